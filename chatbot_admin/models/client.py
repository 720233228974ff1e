from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer,
                        String, Text)

from chatbot_admin.core.constants import (DEFAULT_PRIMARY_COLOR,
                                          DEFAULT_SECONDARY_COLOR,
                                          MAX_LEN_COLOR, MAX_NAME_CLIENT)
from chatbot_admin.core.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Client(Base):
    """Владелец чат-виджета: оформление и приветствие бота."""
    name = Column(String(MAX_NAME_CLIENT), nullable=False)
    category = Column(String(255), nullable=False)
    logo = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    primary_color = Column(
        String(MAX_LEN_COLOR), default=DEFAULT_PRIMARY_COLOR, nullable=False
    )
    secondary_color = Column(
        String(MAX_LEN_COLOR), default=DEFAULT_SECONDARY_COLOR, nullable=False
    )
    chat_title = Column(String(255), nullable=False)
    welcome_message = Column(Text, nullable=False)
    user_id = Column(
        ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow,
                        onupdate=utcnow)


class Statistic(Base):
    """Счётчики клиента; меняются только атомарным UPDATE col = col + 1."""
    client_id = Column(
        ForeignKey('client.id', ondelete='CASCADE'),
        unique=True,
        index=True,
        nullable=False,
    )
    message_count = Column(Integer, default=0, nullable=False)
    user_count = Column(Integer, default=0, nullable=False)
    support_request_count = Column(Integer, default=0, nullable=False)
    date = Column(DateTime(timezone=True), default=utcnow)
