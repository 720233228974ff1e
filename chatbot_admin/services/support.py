"""Жизненный цикл чата поддержки: pending -> active -> closed.

closed терминален: из него нет переходов и в него нельзя писать.
Любое изменение статуса или новое сообщение сдвигает updated_at,
по нему сортируется входящая очередь оператора.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.support import (crud_support_agent, crud_support_chat,
                                        crud_support_message)
from chatbot_admin.crud.user import crud_user
from chatbot_admin.models.support import (SupportChat, SupportMessage,
                                          SupportStatus)
from chatbot_admin.services.exceptions import (ConflictError, NotFoundError,
                                               StorageError, ValidationError)

logger = logging.getLogger('chatbot_admin')

ALLOWED_TRANSITIONS = {
    SupportStatus.PENDING: {SupportStatus.ACTIVE, SupportStatus.CLOSED},
    SupportStatus.ACTIVE: {SupportStatus.CLOSED},
    SupportStatus.CLOSED: set(),
}


def can_transition(current: SupportStatus, target: SupportStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def apply_transition(chat: SupportChat, target: SupportStatus) -> bool:
    """Меняет статус на месте. Возвращает False, если менять нечего."""
    current = SupportStatus(chat.status)
    target = SupportStatus(target)
    if current == SupportStatus.CLOSED and target != current:
        raise ConflictError(f'Support chat {chat.id} is closed')
    if current == target:
        return False
    if not can_transition(current, target):
        raise ConflictError(
            f'Cannot move support chat {chat.id} '
            f'from {current.value} to {target.value}'
        )
    chat.status = target
    if target == SupportStatus.CLOSED:
        chat.resolved_at = datetime.now(timezone.utc)
    chat.touch()
    return True


async def get_chat(session: AsyncSession, chat_id: int) -> SupportChat:
    chat = await crud_support_chat.get_or_none(session, chat_id)
    if chat is None:
        raise NotFoundError(f'Support chat {chat_id} not found')
    return chat


async def _commit(session: AsyncSession, action: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f'Ошибка БД при {action}: {e}')
        await session.rollback()
        raise StorageError(f'Failed to {action}') from e


async def transition(
    session: AsyncSession,
    chat_id: int,
    target: SupportStatus,
) -> SupportChat:
    chat = await get_chat(session, chat_id)
    if apply_transition(chat, target):
        session.add(chat)
        await _commit(session, 'update support chat status')
        await session.refresh(chat)
        logger.info(f'Чат поддержки {chat.id} переведён в {chat.status}')
    return chat


async def update_chat(
    session: AsyncSession,
    chat_id: int,
    status: Optional[SupportStatus] = None,
    agent_id: Optional[int] = None,
) -> SupportChat:
    """Смена статуса и/или оператора одной транзакцией."""
    chat = await get_chat(session, chat_id)
    changed = False
    if agent_id is not None and agent_id != chat.agent_id:
        if not chat.is_open:
            raise ConflictError(f'Support chat {chat.id} is closed')
        agent = await crud_support_agent.get_or_none(session, agent_id)
        if agent is None:
            raise NotFoundError(f'Support agent {agent_id} not found')
        chat.agent_id = agent.id
        chat.touch()
        changed = True
    if status is not None:
        changed = apply_transition(chat, status) or changed
    if changed:
        session.add(chat)
        await _commit(session, 'update support chat')
        await session.refresh(chat)
    return chat


async def assign_agent(
    session: AsyncSession, chat_id: int, agent_id: int
) -> SupportChat:
    return await update_chat(session, chat_id, agent_id=agent_id)


async def add_message(
    session: AsyncSession,
    chat: SupportChat,
    content: str,
    sender_id: Optional[int] = None,
) -> SupportMessage:
    """Добавляет сообщение в открытый чат без коммита."""
    if not chat.is_open:
        raise ConflictError(f'Support chat {chat.id} is closed')
    content = (content or '').strip()
    if not content:
        raise ValidationError('Message content must not be empty')
    message = SupportMessage(
        chat_id=chat.id,
        sender_id=sender_id,
        content=content,
        is_read=False,
    )
    session.add(message)
    if sender_id is not None and chat.status == SupportStatus.PENDING:
        # первый ответ оператора берёт чат в работу
        apply_transition(chat, SupportStatus.ACTIVE)
    else:
        chat.touch()
    session.add(chat)
    await session.flush()
    return message


async def post_message(
    session: AsyncSession,
    chat_id: int,
    content: str,
    sender_id: Optional[int] = None,
) -> SupportMessage:
    chat = await get_chat(session, chat_id)
    if sender_id is not None:
        if await crud_user.get_or_none(session, sender_id) is None:
            raise NotFoundError(f'Sender {sender_id} not found')
    try:
        message = await add_message(session, chat, content, sender_id)
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f'Ошибка БД при записи в чат {chat_id}: {e}')
        await session.rollback()
        raise StorageError('Failed to create support message') from e
    await session.refresh(message)
    logger.debug(
        f'Сообщение {message.id} добавлено в чат поддержки {chat_id}'
    )
    return message


async def list_messages(
    session: AsyncSession,
    chat_id: int,
    reader_id: Optional[int] = None,
) -> list[SupportMessage]:
    await get_chat(session, chat_id)
    if reader_id is not None:
        await crud_support_message.mark_read(session, chat_id, reader_id)
        await _commit(session, 'mark support messages as read')
    return await crud_support_message.list_by_chat(session, chat_id)
