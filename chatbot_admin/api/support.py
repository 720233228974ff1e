from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.api.deps import get_hub
from chatbot_admin.api.validators import http_error
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.chat import crud_chat_session
from chatbot_admin.crud.client import crud_client
from chatbot_admin.crud.support import crud_support_agent, crud_support_chat
from chatbot_admin.crud.user import crud_user
from chatbot_admin.models.support import SupportChat
from chatbot_admin.schemas.auth import UserResponse
from chatbot_admin.schemas.chat import ChatSessionResponse
from chatbot_admin.schemas.client import ClientResponse
from chatbot_admin.schemas.support import (SupportAgentResponse,
                                           SupportAgentUpdate,
                                           SupportChatCreate,
                                           SupportChatDetail,
                                           SupportChatResponse,
                                           SupportChatUpdate,
                                           SupportChatWithInfo,
                                           SupportMessageCreate,
                                           SupportMessageResponse)
from chatbot_admin.services import escalation, support
from chatbot_admin.services.exceptions import ChatbotError
from chatbot_admin.services.realtime import SupportChatHub

router = APIRouter(tags=['support'])


async def _with_info(
    session: AsyncSession, chat: SupportChat
) -> SupportChatWithInfo:
    client = None
    if chat.client_id is not None:
        client = await crud_client.get_or_none(session, chat.client_id)
    chat_session = None
    if chat.session_id is not None:
        chat_session = await crud_chat_session.get_or_none(
            session, chat.session_id
        )
    return SupportChatWithInfo(
        **SupportChatResponse.model_validate(chat).model_dump(),
        client=ClientResponse.model_validate(client) if client else None,
        session=(
            ChatSessionResponse.model_validate(chat_session)
            if chat_session else None
        ),
    )


@router.get(
    '/agents',
    status_code=status.HTTP_200_OK,
    response_model=list[SupportAgentResponse],
)
async def list_agents(
    session: AsyncSession = Depends(get_session),
):
    agents = await crud_support_agent.get_multi(session)
    result = []
    for agent in agents:
        user = await crud_user.get_or_none(session, agent.user_id)
        result.append(
            SupportAgentResponse(
                id=agent.id,
                user_id=agent.user_id,
                is_available=agent.is_available,
                last_active=agent.last_active,
                user=UserResponse.model_validate(user) if user else None,
            )
        )
    return result


@router.patch(
    '/agents/{agent_id}',
    status_code=status.HTTP_200_OK,
    response_model=SupportAgentResponse,
)
async def update_agent(
    agent_id: int,
    payload: SupportAgentUpdate,
    session: AsyncSession = Depends(get_session),
):
    agent = await crud_support_agent.get(session, agent_id)
    return await crud_support_agent.update(
        agent,
        {
            'is_available': payload.is_available,
            'last_active': datetime.now(timezone.utc),
        },
        session,
    )


@router.get(
    '/support/chats',
    status_code=status.HTTP_200_OK,
    response_model=list[SupportChatWithInfo],
)
async def list_support_chats(
    agent_id: Optional[int] = Query(default=None),
    client_id: Optional[int] = Query(default=None),
    unassigned: bool = Query(default=False),
    session: AsyncSession = Depends(get_session),
):
    if agent_id is not None:
        chats = await crud_support_chat.list_by_agent(session, agent_id)
    elif client_id is not None:
        chats = await crud_support_chat.list_by_client(session, client_id)
    elif unassigned:
        chats = await crud_support_chat.list_unassigned(session)
    else:
        raise HTTPException(
            status_code=400,
            detail='Either agent_id, client_id or unassigned is required',
        )
    return [await _with_info(session, chat) for chat in chats]


@router.get(
    '/support/chats/{chat_id}',
    status_code=status.HTTP_200_OK,
    response_model=SupportChatDetail,
)
async def get_support_chat(
    chat_id: int,
    session: AsyncSession = Depends(get_session),
):
    try:
        chat = await support.get_chat(session, chat_id)
        messages = await support.list_messages(session, chat_id)
    except ChatbotError as e:
        raise http_error(e)
    return SupportChatDetail(
        chat=await _with_info(session, chat),
        messages=[SupportMessageResponse.model_validate(m) for m in messages],
    )


@router.post(
    '/support/chats',
    status_code=status.HTTP_201_CREATED,
    response_model=SupportChatResponse,
)
async def create_support_chat(
    payload: SupportChatCreate,
    session: AsyncSession = Depends(get_session),
):
    try:
        return await escalation.escalate_manually(
            session,
            client_id=payload.client_id,
            chat_session_id=payload.session_id,
            agent_id=payload.agent_id,
        )
    except ChatbotError as e:
        raise http_error(e)


@router.put(
    '/support/chats/{chat_id}',
    status_code=status.HTTP_200_OK,
    response_model=SupportChatResponse,
)
async def update_support_chat(
    chat_id: int,
    payload: SupportChatUpdate,
    session: AsyncSession = Depends(get_session),
):
    try:
        return await support.update_chat(
            session,
            chat_id,
            status=payload.status,
            agent_id=payload.agent_id,
        )
    except ChatbotError as e:
        raise http_error(e)


@router.get(
    '/support/messages/{chat_id}',
    status_code=status.HTTP_200_OK,
    response_model=list[SupportMessageResponse],
)
async def list_support_messages(
    chat_id: int,
    user_id: Optional[int] = Query(default=None),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await support.list_messages(
            session, chat_id, reader_id=user_id
        )
    except ChatbotError as e:
        raise http_error(e)


@router.post(
    '/support/messages',
    status_code=status.HTTP_201_CREATED,
    response_model=SupportMessageResponse,
)
async def create_support_message(
    payload: SupportMessageCreate,
    session: AsyncSession = Depends(get_session),
    hub: SupportChatHub = Depends(get_hub),
):
    try:
        return await hub.publish(
            session, payload.chat_id, payload.content, payload.sender_id
        )
    except ChatbotError as e:
        raise http_error(e)
