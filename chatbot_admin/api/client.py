from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.api.validators import client_exists
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.client import crud_client, crud_statistic
from chatbot_admin.schemas.client import (ClientCreate, ClientResponse,
                                          ClientUpdate, ClientWithStats,
                                          DashboardStats)

router = APIRouter()


@router.get(
    '/stats',
    tags=['dashboard'],
    status_code=status.HTTP_200_OK,
    response_model=DashboardStats,
)
async def get_dashboard_stats(
    session: AsyncSession = Depends(get_session),
):
    return DashboardStats(**await crud_statistic.totals(session))


@router.get(
    '/clients',
    tags=['clients'],
    status_code=status.HTTP_200_OK,
    response_model=list[ClientWithStats],
)
async def list_clients(
    session: AsyncSession = Depends(get_session),
):
    clients = await crud_client.get_multi(session)
    result = []
    for client in clients:
        stat = await crud_statistic.get_by_client(session, client.id)
        data = ClientResponse.model_validate(client).model_dump()
        result.append(
            ClientWithStats(
                **data,
                message_count=stat.message_count if stat else 0,
                user_count=stat.user_count if stat else 0,
                support_request_count=(
                    stat.support_request_count if stat else 0
                ),
            )
        )
    return result


@router.get(
    '/clients/{client_id}',
    tags=['clients'],
    status_code=status.HTTP_200_OK,
    response_model=ClientResponse,
)
async def get_client(
    client_id: int,
    session: AsyncSession = Depends(get_session),
):
    return await client_exists(client_id, session)


@router.post(
    '/clients',
    tags=['clients'],
    status_code=status.HTTP_201_CREATED,
    response_model=ClientResponse,
)
async def create_client(
    payload: ClientCreate,
    session: AsyncSession = Depends(get_session),
):
    return await crud_client.create_client(session, payload)


@router.put(
    '/clients/{client_id}',
    tags=['clients'],
    status_code=status.HTTP_200_OK,
    response_model=ClientResponse,
)
async def update_client(
    client_id: int,
    payload: ClientUpdate,
    session: AsyncSession = Depends(get_session),
):
    client = await client_exists(client_id, session)
    return await crud_client.update(client, payload, session)


@router.delete(
    '/clients/{client_id}',
    tags=['clients'],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_client(
    client_id: int,
    session: AsyncSession = Depends(get_session),
):
    client = await client_exists(client_id, session)
    await crud_client.remove_client(session, client)
