import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.core.constants import SESSION_TIMEOUTS
from chatbot_admin.crud.chat import crud_chat_session
from chatbot_admin.crud.client import crud_client, crud_statistic
from chatbot_admin.models.chat import ChatSession
from chatbot_admin.services.exceptions import (NotFoundError, StorageError,
                                               ValidationError)

logger = logging.getLogger('chatbot_admin')


def generate_session_token() -> str:
    return str(uuid.uuid4())


def expiry_for(
    policy: str, now: Optional[datetime] = None
) -> Optional[datetime]:
    """Переводит политику QR-сессии (never/24h/7d) в момент истечения."""
    if policy not in SESSION_TIMEOUTS:
        raise ValidationError(f'Unknown session timeout: {policy}')
    delta = SESSION_TIMEOUTS[policy]
    if delta is None:
        return None
    return (now or datetime.now(timezone.utc)) + delta


def is_expired(
    chat_session: ChatSession, now: Optional[datetime] = None
) -> bool:
    expires_at = chat_session.expires_at
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        # sqlite отдаёт даты без зоны, храним всегда UTC
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= (now or datetime.now(timezone.utc))


async def create_session(
    session: AsyncSession,
    client_id: int,
    phone_number: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> ChatSession:
    client = await crud_client.get_or_none(session, client_id)
    if client is None:
        raise NotFoundError(f'Client {client_id} not found')
    try:
        chat_session = ChatSession(
            client_id=client_id,
            session_token=generate_session_token(),
            phone_number=phone_number or None,
            expires_at=expires_at,
        )
        session.add(chat_session)
        await session.flush()
        await crud_statistic.increment_user_count(session, client_id)
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            f'Не удалось создать сессию для клиента {client_id}: {e}'
        )
        await session.rollback()
        raise StorageError('Failed to create chat session') from e
    await session.refresh(chat_session)
    logger.debug(
        f'Сессия {chat_session.id} создана для клиента {client_id}'
    )
    return chat_session


async def get_session_by_token(
    session: AsyncSession, token: str
) -> ChatSession:
    token = (token or '').strip()
    if not token:
        raise NotFoundError('Session not found')
    chat_session = await crud_chat_session.get_by_token(session, token)
    if chat_session is None:
        raise NotFoundError('Session not found')
    return chat_session


async def record_activity(
    session: AsyncSession, chat_session_id: int
) -> None:
    """Сдвигает last_active; коммитит вызывающий код."""
    await crud_chat_session.touch(session, chat_session_id)


def build_share_url(base_url: str, token: str) -> str:
    return f'{base_url.rstrip("/")}/chat/{token}'


async def provision_qr_session(
    session: AsyncSession,
    client_id: int,
    policy: str,
    base_url: str,
    phone_number: Optional[str] = None,
) -> tuple[ChatSession, str]:
    expires_at = expiry_for(policy)
    chat_session = await create_session(
        session,
        client_id=client_id,
        phone_number=phone_number,
        expires_at=expires_at,
    )
    return chat_session, build_share_url(
        base_url, chat_session.session_token
    )
