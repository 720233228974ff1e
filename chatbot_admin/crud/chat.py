from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.base import CRUDBase
from chatbot_admin.models.chat import ChatMessage, ChatSession, CustomResponse
from chatbot_admin.schemas.chat import (ChatMessageCreate, ChatSessionCreate,
                                        CustomResponseCreate,
                                        CustomResponseUpdate)


class CRUDChatSession(CRUDBase[ChatSession, ChatSessionCreate,
                               ChatSessionCreate]):
    async def get_by_token(
        self, session: AsyncSession, token: str
    ) -> Optional[ChatSession]:
        result = await session.execute(
            select(ChatSession).where(ChatSession.session_token == token)
        )
        return result.scalars().first()

    async def get_for_update(
        self, session: AsyncSession, chat_session_id: int
    ) -> Optional[ChatSession]:
        """Строка сессии под блокировкой до конца транзакции.

        Сериализует поиск и создание открытого чата поддержки для одной
        сессии. SQLite FOR UPDATE игнорирует, там пишущие и так идут
        по одному.
        """
        result = await session.execute(
            select(ChatSession)
            .where(ChatSession.id == chat_session_id)
            .with_for_update()
        )
        return result.scalars().first()

    async def touch(
        self, session: AsyncSession, chat_session_id: int
    ) -> None:
        await session.execute(
            update(ChatSession)
            .where(ChatSession.id == chat_session_id)
            .values(last_active=datetime.now(timezone.utc))
        )

    async def list_by_client(
        self, session: AsyncSession, client_id: int
    ) -> list[ChatSession]:
        result = await session.execute(
            select(ChatSession)
            .where(ChatSession.client_id == client_id)
            .order_by(ChatSession.id)
        )
        return result.scalars().all()


class CRUDChatMessage(CRUDBase[ChatMessage, ChatMessageCreate,
                               ChatMessageCreate]):
    async def list_by_session(
        self, session: AsyncSession, chat_session_id: int
    ) -> list[ChatMessage]:
        result = await session.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == chat_session_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        return result.scalars().all()


class CRUDCustomResponse(CRUDBase[CustomResponse, CustomResponseCreate,
                                  CustomResponseUpdate]):
    async def list_by_client(
        self,
        session: AsyncSession,
        client_id: int,
        only_active: bool = False,
    ) -> list[CustomResponse]:
        stmt = select(CustomResponse).where(
            CustomResponse.client_id == client_id
        )
        if only_active:
            stmt = stmt.where(CustomResponse.is_active.is_(True))
        result = await session.execute(stmt.order_by(CustomResponse.id))
        return result.scalars().all()


crud_chat_session = CRUDChatSession(ChatSession)
crud_chat_message = CRUDChatMessage(ChatMessage)
crud_custom_response = CRUDCustomResponse(CustomResponse)
