TEST_CLIENT = {
    'name': 'Restaurante Sabor',
    'category': 'Alimentação',
    'chat_title': 'Atendimento Restaurante Sabor',
    'welcome_message': 'Olá! Bem-vindo ao Restaurante Sabor.',
}
MATCHING_TEXT = 'qual o horario de vcs?'
UNMATCHED_TEXT = 'quero falar com humano'
