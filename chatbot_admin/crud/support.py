from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.base import CRUDBase
from chatbot_admin.models.support import (SupportAgent, SupportChat,
                                          SupportMessage, SupportStatus)
from chatbot_admin.schemas.support import (SupportAgentUpdate,
                                           SupportChatCreate,
                                           SupportChatUpdate,
                                           SupportMessageCreate)


class CRUDSupportAgent(CRUDBase[SupportAgent, SupportAgentUpdate,
                                SupportAgentUpdate]):
    async def first_available(
        self, session: AsyncSession
    ) -> Optional[SupportAgent]:
        result = await session.execute(
            select(SupportAgent)
            .where(SupportAgent.is_available.is_(True))
            .order_by(SupportAgent.id)
            .limit(1)
        )
        return result.scalars().first()

    async def get_by_user(
        self, session: AsyncSession, user_id: int
    ) -> Optional[SupportAgent]:
        result = await session.execute(
            select(SupportAgent).where(SupportAgent.user_id == user_id)
        )
        return result.scalars().first()


class CRUDSupportChat(CRUDBase[SupportChat, SupportChatCreate,
                               SupportChatUpdate]):
    async def list_by_agent(
        self, session: AsyncSession, agent_id: int
    ) -> list[SupportChat]:
        result = await session.execute(
            select(SupportChat)
            .where(SupportChat.agent_id == agent_id)
            .order_by(SupportChat.updated_at.desc(), SupportChat.id.desc())
        )
        return result.scalars().all()

    async def list_by_client(
        self, session: AsyncSession, client_id: int
    ) -> list[SupportChat]:
        result = await session.execute(
            select(SupportChat)
            .where(SupportChat.client_id == client_id)
            .order_by(SupportChat.updated_at.desc(), SupportChat.id.desc())
        )
        return result.scalars().all()

    async def list_unassigned(
        self, session: AsyncSession
    ) -> list[SupportChat]:
        result = await session.execute(
            select(SupportChat)
            .where(
                SupportChat.agent_id.is_(None),
                SupportChat.status != SupportStatus.CLOSED,
            )
            .order_by(SupportChat.created_at, SupportChat.id)
        )
        return result.scalars().all()

    async def find_open_for_session(
        self, session: AsyncSession, chat_session_id: int
    ) -> Optional[SupportChat]:
        result = await session.execute(
            select(SupportChat)
            .where(
                SupportChat.session_id == chat_session_id,
                SupportChat.status != SupportStatus.CLOSED,
            )
            .order_by(SupportChat.id.desc())
            .limit(1)
        )
        return result.scalars().first()


class CRUDSupportMessage(CRUDBase[SupportMessage, SupportMessageCreate,
                                  SupportMessageCreate]):
    async def list_by_chat(
        self, session: AsyncSession, chat_id: int
    ) -> list[SupportMessage]:
        result = await session.execute(
            select(SupportMessage)
            .where(SupportMessage.chat_id == chat_id)
            .order_by(SupportMessage.created_at, SupportMessage.id)
        )
        return result.scalars().all()

    async def mark_read(
        self, session: AsyncSession, chat_id: int, reader_id: int
    ) -> None:
        # свои сообщения читатель и так видел
        await session.execute(
            update(SupportMessage)
            .where(
                SupportMessage.chat_id == chat_id,
                SupportMessage.is_read.is_(False),
                (SupportMessage.sender_id.is_(None))
                | (SupportMessage.sender_id != reader_id),
            )
            .values(is_read=True)
        )


crud_support_agent = CRUDSupportAgent(SupportAgent)
crud_support_chat = CRUDSupportChat(SupportChat)
crud_support_message = CRUDSupportMessage(SupportMessage)
