from chatbot_admin.core.db import Base  # noqa
from chatbot_admin.models.chat import (ChatMessage, ChatSession,  # noqa
                                       CustomResponse)
from chatbot_admin.models.client import Client, Statistic  # noqa
from chatbot_admin.models.support import (SupportAgent, SupportChat,  # noqa
                                          SupportMessage)
from chatbot_admin.models.user import User  # noqa

__all__ = [
    'Base',
    'User',
    'Client',
    'Statistic',
    'ChatSession',
    'ChatMessage',
    'CustomResponse',
    'SupportAgent',
    'SupportChat',
    'SupportMessage',
]
