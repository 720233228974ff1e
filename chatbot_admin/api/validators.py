from http import HTTPStatus

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.chat import crud_chat_session
from chatbot_admin.crud.client import crud_client
from chatbot_admin.models.chat import ChatSession
from chatbot_admin.models.client import Client
from chatbot_admin.services.exceptions import (ChatbotError, ConflictError,
                                               NotFoundError, StorageError,
                                               ValidationError)

ERROR_STATUS = {
    ValidationError: HTTPStatus.UNPROCESSABLE_ENTITY,
    NotFoundError: HTTPStatus.NOT_FOUND,
    ConflictError: HTTPStatus.CONFLICT,
    StorageError: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def http_error(error: ChatbotError) -> HTTPException:
    status_code = ERROR_STATUS.get(
        type(error), HTTPStatus.INTERNAL_SERVER_ERROR
    )
    return HTTPException(status_code=status_code, detail=str(error))


async def client_exists(client_id: int, session: AsyncSession) -> Client:
    client = await crud_client.get_or_none(session, client_id)
    if client is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail='Client not found'
        )
    return client


async def chat_session_exists(
        chat_session_id: int, session: AsyncSession
) -> ChatSession:
    chat_session = await crud_chat_session.get_or_none(
        session, chat_session_id
    )
    if chat_session is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail='Session not found'
        )
    return chat_session
