from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.api.validators import client_exists
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.chat import crud_custom_response
from chatbot_admin.schemas.chat import (CustomResponseCreate,
                                        CustomResponseOut,
                                        CustomResponseUpdate)

router = APIRouter()


@router.get(
    '/responses/{client_id}',
    tags=['responses'],
    status_code=status.HTTP_200_OK,
    response_model=list[CustomResponseOut],
)
async def list_custom_responses(
    client_id: int,
    session: AsyncSession = Depends(get_session),
):
    return await crud_custom_response.list_by_client(session, client_id)


@router.post(
    '/responses',
    tags=['responses'],
    status_code=status.HTTP_201_CREATED,
    response_model=CustomResponseOut,
)
async def create_custom_response(
    payload: CustomResponseCreate,
    session: AsyncSession = Depends(get_session),
):
    await client_exists(payload.client_id, session)
    return await crud_custom_response.create(payload, session)


@router.put(
    '/responses/{response_id}',
    tags=['responses'],
    status_code=status.HTTP_200_OK,
    response_model=CustomResponseOut,
)
async def update_custom_response(
    response_id: int,
    payload: CustomResponseUpdate,
    session: AsyncSession = Depends(get_session),
):
    rule = await crud_custom_response.get(session, response_id)
    return await crud_custom_response.update(rule, payload, session)


@router.delete(
    '/responses/{response_id}',
    tags=['responses'],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_custom_response(
    response_id: int,
    session: AsyncSession = Depends(get_session),
):
    rule = await crud_custom_response.get(session, response_id)
    await crud_custom_response.remove(rule, session)
