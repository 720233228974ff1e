from datetime import timedelta

MAX_NAME_CLIENT = 255
MAX_LEN_KEYWORD = 255
MAX_LEN_COLOR = 20
MAX_LEN_PHONE = 20
MAX_LEN_MESSAGE = 4000

# Политики срока жизни сессии при выдаче QR-кода
SESSION_TIMEOUT_NEVER = 'never'
SESSION_TIMEOUT_24H = '24h'
SESSION_TIMEOUT_7D = '7d'
SESSION_TIMEOUTS = {
    SESSION_TIMEOUT_NEVER: None,
    SESSION_TIMEOUT_24H: timedelta(hours=24),
    SESSION_TIMEOUT_7D: timedelta(days=7),
}

SUPPORT_MESSAGE_EVENT = 'support_message'
JOIN_SUPPORT_CHAT_EVENT = 'join_support_chat'
ERROR_EVENT = 'error'

DEFAULT_PRIMARY_COLOR = '#3B82F6'
DEFAULT_SECONDARY_COLOR = '#10B981'
