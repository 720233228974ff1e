import asyncio
import logging

from chatbot_admin.core.base import Base
from chatbot_admin.core.db import get_async_session, get_engine
from chatbot_admin.crud.chat import crud_custom_response
from chatbot_admin.crud.client import crud_client
from chatbot_admin.crud.user import crud_user
from chatbot_admin.models.support import SupportAgent
from chatbot_admin.models.user import User, UserRole
from chatbot_admin.schemas.chat import CustomResponseCreate
from chatbot_admin.schemas.client import ClientCreate
from chatbot_admin.services.auth import get_password_hash

logger = logging.getLogger('chatbot_admin')

DEMO_CLIENTS = [
    {
        'client': {
            'name': 'Loja Conceito',
            'category': 'E-commerce',
            'primary_color': '#3B82F6',
            'secondary_color': '#10B981',
            'chat_title': 'Atendimento Loja Conceito',
            'welcome_message': (
                'Olá! Bem-vindo à Loja Conceito. '
                'Como posso ajudar você hoje?'
            ),
        },
        'responses': [
            ('horario', 'Nosso horário de funcionamento é de segunda a '
                        'sexta, das 9h às 18h, e aos sábados das 9h às 13h.'),
            ('entrega', 'Realizamos entregas para todo o Brasil. O prazo '
                        'médio é de 3 a 5 dias úteis.'),
        ],
    },
    {
        'client': {
            'name': 'Restaurante Sabor',
            'category': 'Alimentação',
            'primary_color': '#10B981',
            'secondary_color': '#3B82F6',
            'chat_title': 'Atendimento Restaurante Sabor',
            'welcome_message': (
                'Olá! Bem-vindo ao Restaurante Sabor. '
                'Como posso ajudar você hoje?'
            ),
        },
        'responses': [
            ('reserva', 'Para fazer uma reserva, informe a data, horário '
                        'e número de pessoas.'),
        ],
    },
]


async def seed_data(admin_password: str = 'admin123'):
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = get_async_session()
    async with async_session() as session:
        admin = await crud_user.get_by_username(session, 'admin')
        if admin is None:
            admin = User(
                username='admin',
                password_hash=get_password_hash(admin_password),
                name='Admin',
                email='admin@example.com',
                role=UserRole.ADMIN,
            )
            session.add(admin)
            await session.flush()
            session.add(SupportAgent(user_id=admin.id, is_available=True))
            await session.commit()
            logger.info(f'Создан администратор и оператор: {admin.id}')

        existing = {c.name for c in await crud_client.get_multi(session)}
        for demo in DEMO_CLIENTS:
            if demo['client']['name'] in existing:
                continue
            client = await crud_client.create_client(
                session,
                ClientCreate(**demo['client'], user_id=admin.id),
            )
            for keyword, response in demo['responses']:
                await crud_custom_response.create(
                    CustomResponseCreate(
                        client_id=client.id,
                        keyword=keyword,
                        response=response,
                    ),
                    session,
                )


if __name__ == "__main__":
    asyncio.run(seed_data())
