from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chatbot_admin.core.db import Base
from chatbot_admin.models.client import utcnow


class ChatSession(Base):
    client_id: Mapped[int | None] = mapped_column(
        ForeignKey('client.id', ondelete='SET NULL'), index=True
    )
    # Токен и есть пропуск в сессию: кто знает токен, тот её продолжает
    session_token: Mapped[str] = mapped_column(
        String(64), unique=True, index=True
    )
    phone_number: Mapped[str | None] = mapped_column(String(20))
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class ChatMessage(Base):
    session_id: Mapped[int | None] = mapped_column(
        ForeignKey('chatsession.id', ondelete='CASCADE'), index=True
    )
    content: Mapped[str] = mapped_column(Text)
    is_user_message: Mapped[bool] = mapped_column(Boolean, default=False)
    needs_support: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class CustomResponse(Base):
    client_id: Mapped[int] = mapped_column(
        ForeignKey('client.id', ondelete='CASCADE'), index=True
    )
    keyword: Mapped[str] = mapped_column(String(255))
    response: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
