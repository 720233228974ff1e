"""Рассылка сообщений поддержки по WebSocket.

Хаб хранит явный реестр: connection_id -> (chat_id, participant_id).
Доставка "живым хвостом": без буфера и повторов, кто подключился позже,
забирает историю через GET /support/messages/{chat_id}.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.core.constants import SUPPORT_MESSAGE_EVENT
from chatbot_admin.models.support import SupportMessage
from chatbot_admin.schemas.support import (SupportMessageEvent,
                                           SupportMessageResponse)
from chatbot_admin.services import support

logger = logging.getLogger('chatbot_admin')


class Connection(Protocol):
    async def send_json(self, data: Any, mode: str = 'text') -> None:
        ...


@dataclass(frozen=True)
class Membership:
    chat_id: int
    participant_id: Optional[int] = None


def support_message_event(message: SupportMessage) -> dict:
    return SupportMessageEvent(
        type=SUPPORT_MESSAGE_EVENT,
        message=SupportMessageResponse.model_validate(message),
    ).model_dump(mode='json')


class SupportChatHub:
    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._memberships: dict[str, Membership] = {}

    def connect(self, connection: Connection) -> str:
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = connection
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        self._memberships.pop(connection_id, None)

    def join(
        self,
        connection_id: str,
        chat_id: int,
        participant_id: Optional[int] = None,
    ) -> Membership:
        """Привязывает соединение к чату; повторный join перезаписывает."""
        if connection_id not in self._connections:
            raise KeyError(f'Unknown connection {connection_id}')
        membership = Membership(chat_id=chat_id, participant_id=participant_id)
        self._memberships[connection_id] = membership
        logger.debug(
            f'Соединение {connection_id} присоединилось к чату {chat_id}'
        )
        return membership

    def membership(self, connection_id: str) -> Optional[Membership]:
        return self._memberships.get(connection_id)

    def members(self, chat_id: int) -> list[str]:
        return [
            connection_id
            for connection_id, membership in self._memberships.items()
            if membership.chat_id == chat_id
            and connection_id in self._connections
        ]

    async def broadcast(self, chat_id: int, message: SupportMessage) -> int:
        """Шлёт событие каждому соединению чата один раз.

        Упавшие соединения выкидываются из реестра, ошибка наружу не идёт.
        Возвращает число успешных доставок.
        """
        payload = support_message_event(message)
        delivered = 0
        for connection_id in self.members(chat_id):
            connection = self._connections.get(connection_id)
            if connection is None:
                continue
            try:
                await connection.send_json(payload)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f'Соединение {connection_id} отвалилось при рассылке '
                    f'в чат {chat_id}: {e}'
                )
                self.disconnect(connection_id)
        return delivered

    async def publish(
        self,
        session: AsyncSession,
        chat_id: int,
        content: str,
        sender_id: Optional[int] = None,
    ) -> SupportMessage:
        """Сохраняет сообщение и только потом рассылает его."""
        message = await support.post_message(
            session, chat_id, content, sender_id
        )
        await self.broadcast(chat_id, message)
        return message
