from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Index, Text, text

from chatbot_admin.core.db import Base
from chatbot_admin.models.client import utcnow


class SupportStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"


class SupportAgent(Base):
    user_id = Column(
        ForeignKey('app_user.id', ondelete='CASCADE'),
        index=True,
        nullable=False,
    )
    is_available = Column(Boolean, default=True, nullable=False)
    last_active = Column(DateTime(timezone=True), default=utcnow)


class SupportChat(Base):
    # не больше одного открытого чата на сессию
    __table_args__ = (
        Index(
            'uq_supportchat_open_session',
            'session_id',
            unique=True,
            postgresql_where=text("status != 'closed'"),
            sqlite_where=text("status != 'closed'"),
        ),
    )

    client_id = Column(
        ForeignKey('client.id', ondelete='SET NULL'), index=True
    )
    session_id = Column(
        ForeignKey('chatsession.id', ondelete='SET NULL'), index=True
    )
    # NULL, пока чат ждёт в очереди без свободного оператора
    agent_id = Column(
        ForeignKey('supportagent.id', ondelete='SET NULL'),
        index=True,
        nullable=True,
    )
    status = Column(
        SqlEnum(
            SupportStatus,
            name="supportstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        default=SupportStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status != SupportStatus.CLOSED

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


class SupportMessage(Base):
    chat_id = Column(
        ForeignKey('supportchat.id', ondelete='CASCADE'),
        index=True,
        nullable=False,
    )
    # None означает сообщение со стороны посетителя виджета
    sender_id = Column(
        ForeignKey('app_user.id', ondelete='SET NULL'),
        index=True,
        nullable=True,
    )
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
