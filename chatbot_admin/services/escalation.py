"""Маршрутизация входящего сообщения посетителя.

Сообщение сохраняется всегда. Если автоответ не нашёлся, сообщение
помечается needs_support и попадает в чат поддержки сессии: открытый
чат переиспользуется, иначе создаётся новый pending-чат на первого
свободного оператора. Без свободных операторов чат создаётся
неназначенным (agent_id = NULL) и ждёт в очереди.

Все записи одного сообщения уходят одним коммитом; рассылка в WebSocket
идёт только после него.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.chat import crud_chat_session
from chatbot_admin.crud.client import crud_client, crud_statistic
from chatbot_admin.crud.support import crud_support_agent, crud_support_chat
from chatbot_admin.models.chat import ChatMessage
from chatbot_admin.models.support import (SupportChat, SupportMessage,
                                          SupportStatus)
from chatbot_admin.services import matcher, sessions, support
from chatbot_admin.services.exceptions import (NotFoundError, StorageError,
                                               ValidationError)
from chatbot_admin.services.realtime import SupportChatHub

logger = logging.getLogger('chatbot_admin')


@dataclass
class InboundResult:
    message: ChatMessage
    escalated: bool
    matched: bool = False
    reply: Optional[str] = None
    support_chat: Optional[SupportChat] = None
    support_message: Optional[SupportMessage] = None


def _clean(text: Optional[str]) -> str:
    text = (text or '').strip()
    if not text:
        raise ValidationError('Message content must not be empty')
    return text


async def _open_support_chat(
    session: AsyncSession,
    client_id: int,
    chat_session_id: int,
    agent_id: Optional[int] = None,
) -> SupportChat:
    """Открытый чат сессии или новый pending-чат. Без коммита."""
    support_chat = await crud_support_chat.find_open_for_session(
        session, chat_session_id
    )
    if support_chat is not None:
        return support_chat
    if agent_id is None:
        agent = await crud_support_agent.first_available(session)
        agent_id = agent.id if agent else None
    support_chat = SupportChat(
        client_id=client_id,
        session_id=chat_session_id,
        agent_id=agent_id,
        status=SupportStatus.PENDING,
    )
    session.add(support_chat)
    await session.flush()
    if agent_id is None:
        logger.warning(
            f'Нет свободных операторов: чат поддержки {support_chat.id} '
            f'ждёт назначения'
        )
    else:
        logger.info(
            f'Чат поддержки {support_chat.id} назначен оператору {agent_id}'
        )
    return support_chat


async def handle_inbound_user_message(
    session: AsyncSession,
    chat_session_id: int,
    text: str,
    hub: Optional[SupportChatHub] = None,
) -> InboundResult:
    text = _clean(text)
    chat_session = await crud_chat_session.get_for_update(
        session, chat_session_id
    )
    if chat_session is None:
        raise NotFoundError('Session not found')

    try:
        message = ChatMessage(
            session_id=chat_session.id,
            content=text,
            is_user_message=True,
            needs_support=False,
        )
        session.add(message)
        await session.flush()
        await sessions.record_activity(session, chat_session.id)

        client_id = chat_session.client_id
        if client_id is None:
            # клиента нет: сохраняем как есть, эскалировать некуда
            logger.warning(
                f'Сессия {chat_session.id} без клиента, сообщение '
                f'{message.id} не эскалируется'
            )
            await session.commit()
            return InboundResult(message=message, escalated=False)

        await crud_statistic.increment_message_count(session, client_id)
        result = await matcher.match(session, client_id, text)
        if result.matched:
            await session.commit()
            return InboundResult(
                message=message,
                escalated=False,
                matched=True,
                reply=result.reply,
            )

        message.needs_support = True
        await crud_statistic.increment_support_request_count(
            session, client_id
        )
        support_chat = await _open_support_chat(
            session, client_id, chat_session.id
        )
        mirrored = await support.add_message(
            session, support_chat, text, sender_id=None
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            f'Ошибка БД при обработке сообщения сессии '
            f'{chat_session_id}: {e}'
        )
        await session.rollback()
        raise StorageError('Failed to store chat message') from e

    await session.refresh(message)
    await session.refresh(support_chat)
    await session.refresh(mirrored)
    if hub is not None:
        await hub.broadcast(support_chat.id, mirrored)
    return InboundResult(
        message=message,
        escalated=True,
        support_chat=support_chat,
        support_message=mirrored,
    )


async def store_bot_reply(
    session: AsyncSession,
    chat_session_id: int,
    text: str,
) -> ChatMessage:
    """Сохраняет ответ бота (автоответ или системный текст)."""
    text = _clean(text)
    chat_session = await crud_chat_session.get_or_none(
        session, chat_session_id
    )
    if chat_session is None:
        raise NotFoundError('Session not found')
    try:
        message = ChatMessage(
            session_id=chat_session.id,
            content=text,
            is_user_message=False,
            needs_support=False,
        )
        session.add(message)
        await session.flush()
        await sessions.record_activity(session, chat_session.id)
        if chat_session.client_id is not None:
            await crud_statistic.increment_message_count(
                session, chat_session.client_id
            )
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f'Ошибка БД при сохранении ответа бота: {e}')
        await session.rollback()
        raise StorageError('Failed to store bot reply') from e
    await session.refresh(message)
    return message


async def escalate_manually(
    session: AsyncSession,
    client_id: int,
    chat_session_id: int,
    agent_id: Optional[int] = None,
) -> SupportChat:
    """Ручная эскалация: открытый чат сессии или новый."""
    if await crud_client.get_or_none(session, client_id) is None:
        raise NotFoundError(f'Client {client_id} not found')
    chat_session = await crud_chat_session.get_for_update(
        session, chat_session_id
    )
    if chat_session is None:
        raise NotFoundError('Session not found')
    if chat_session.client_id != client_id:
        raise ValidationError(
            f'Session {chat_session.id} does not belong to client {client_id}'
        )
    if agent_id is not None:
        if await crud_support_agent.get_or_none(session, agent_id) is None:
            raise NotFoundError(f'Support agent {agent_id} not found')
    try:
        support_chat = await _open_support_chat(
            session, client_id, chat_session.id, agent_id=agent_id
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f'Ошибка БД при ручной эскалации: {e}')
        await session.rollback()
        raise StorageError('Failed to create support chat') from e
    await session.refresh(support_chat)
    return support_chat
