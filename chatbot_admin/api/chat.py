import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.api.deps import get_hub
from chatbot_admin.api.validators import chat_session_exists, http_error
from chatbot_admin.core.config import settings
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.chat import crud_chat_message
from chatbot_admin.schemas.chat import (ChatMessageCreate,
                                        ChatMessageResponse,
                                        ChatSessionCreate, ChatSessionDetail,
                                        ChatSessionResponse,
                                        InboundMessageResult,
                                        QRGenerateRequest, QRGenerateResponse)
from chatbot_admin.services import escalation, sessions
from chatbot_admin.services.exceptions import ChatbotError
from chatbot_admin.services.realtime import SupportChatHub

logger = logging.getLogger('chatbot_admin')

router = APIRouter(tags=['chat'])


@router.post(
    '/chat/sessions',
    status_code=status.HTTP_201_CREATED,
    response_model=ChatSessionResponse,
)
async def create_chat_session(
    payload: ChatSessionCreate,
    session: AsyncSession = Depends(get_session),
):
    try:
        return await sessions.create_session(
            session,
            client_id=payload.client_id,
            phone_number=payload.phone_number,
            expires_at=payload.expires_at,
        )
    except ChatbotError as e:
        raise http_error(e)


@router.get(
    '/chat/sessions/{token}',
    status_code=status.HTTP_200_OK,
    response_model=ChatSessionDetail,
)
async def get_chat_session(
    token: str,
    session: AsyncSession = Depends(get_session),
):
    """Сессия по токену вместе с историей; 404 - виджет берёт новую."""
    try:
        chat_session = await sessions.get_session_by_token(session, token)
    except ChatbotError as e:
        raise http_error(e)
    messages = await crud_chat_message.list_by_session(
        session, chat_session.id
    )
    return ChatSessionDetail(
        session=ChatSessionResponse.model_validate(chat_session),
        messages=[ChatMessageResponse.model_validate(m) for m in messages],
        expired=sessions.is_expired(chat_session),
    )


@router.post(
    '/chat/messages',
    status_code=status.HTTP_201_CREATED,
    response_model=InboundMessageResult,
)
async def create_chat_message(
    payload: ChatMessageCreate,
    session: AsyncSession = Depends(get_session),
    hub: SupportChatHub = Depends(get_hub),
):
    try:
        if not payload.is_user_message:
            message = await escalation.store_bot_reply(
                session, payload.session_id, payload.content
            )
            return InboundMessageResult(
                message=ChatMessageResponse.model_validate(message),
                escalated=False,
                matched=False,
            )
        result = await escalation.handle_inbound_user_message(
            session, payload.session_id, payload.content, hub=hub
        )
        reply = None
        if result.matched:
            reply = await escalation.store_bot_reply(
                session, payload.session_id, result.reply
            )
    except ChatbotError as e:
        raise http_error(e)
    return InboundMessageResult(
        message=ChatMessageResponse.model_validate(result.message),
        escalated=result.escalated,
        matched=result.matched,
        reply=ChatMessageResponse.model_validate(reply) if reply else None,
        support_chat_id=(
            result.support_chat.id if result.support_chat else None
        ),
    )


@router.get(
    '/chat/messages/{session_id}',
    status_code=status.HTTP_200_OK,
    response_model=list[ChatMessageResponse],
)
async def list_chat_messages(
    session_id: int,
    session: AsyncSession = Depends(get_session),
):
    await chat_session_exists(session_id, session)
    return await crud_chat_message.list_by_session(session, session_id)


@router.post(
    '/qr/generate',
    status_code=status.HTTP_201_CREATED,
    response_model=QRGenerateResponse,
)
async def generate_qr_session(
    payload: QRGenerateRequest,
    session: AsyncSession = Depends(get_session),
):
    try:
        chat_session, qr_url = await sessions.provision_qr_session(
            session,
            client_id=payload.client_id,
            policy=payload.session_timeout,
            base_url=settings.public_base_url,
            phone_number=payload.phone_number,
        )
    except ChatbotError as e:
        raise http_error(e)
    logger.info(f'QR-сессия {chat_session.id} выдана: {qr_url}')
    return QRGenerateResponse(
        session=ChatSessionResponse.model_validate(chat_session),
        qr_url=qr_url,
    )
