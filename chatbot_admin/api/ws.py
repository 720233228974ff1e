import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.core.constants import (ERROR_EVENT,
                                          JOIN_SUPPORT_CHAT_EVENT,
                                          SUPPORT_MESSAGE_EVENT)
from chatbot_admin.core.db import get_session
from chatbot_admin.services import support
from chatbot_admin.services.exceptions import ChatbotError
from chatbot_admin.services.realtime import SupportChatHub

logger = logging.getLogger('chatbot_admin')

router = APIRouter()


def _error(detail: str) -> dict[str, Any]:
    return {'type': ERROR_EVENT, 'detail': detail}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


async def handle_socket_event(
    hub: SupportChatHub,
    session: AsyncSession,
    connection_id: str,
    data: Any,
) -> Optional[dict[str, Any]]:
    """Обрабатывает одно входящее событие сокета.

    Возвращает ответ только для отправителя (подтверждение или ошибку);
    сами сообщения поддержки уходят всем участникам чата через хаб.
    """
    if not isinstance(data, dict):
        return _error('Event must be a JSON object')
    event_type = data.get('type')
    chat_id = _as_int(data.get('chatId'))
    user_id = _as_int(data.get('userId'))

    if event_type == JOIN_SUPPORT_CHAT_EVENT:
        if chat_id is None:
            return _error('chatId is required')
        try:
            await support.get_chat(session, chat_id)
        except ChatbotError as e:
            return _error(str(e))
        hub.join(connection_id, chat_id, user_id)
        return {'type': 'joined', 'chatId': chat_id}

    if event_type == SUPPORT_MESSAGE_EVENT:
        if chat_id is None or not data.get('content'):
            return _error('chatId and content are required')
        if user_id is None:
            membership = hub.membership(connection_id)
            if membership is not None and membership.chat_id == chat_id:
                user_id = membership.participant_id
        try:
            await hub.publish(session, chat_id, str(data['content']), user_id)
        except ChatbotError as e:
            return _error(str(e))
        return None

    return _error(f'Unknown event type: {event_type}')


@router.websocket('/ws')
async def support_chat_socket(
    websocket: WebSocket,
    session: AsyncSession = Depends(get_session),
):
    hub: SupportChatHub = websocket.app.state.hub
    await websocket.accept()
    connection_id = hub.connect(websocket)
    logger.info(f'WebSocket {connection_id} подключён')
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                await websocket.send_json(_error('Invalid JSON'))
                continue
            reply = await handle_socket_event(
                hub, session, connection_id, data
            )
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        logger.info(f'WebSocket {connection_id} отключён')
    finally:
        hub.disconnect(connection_id)
