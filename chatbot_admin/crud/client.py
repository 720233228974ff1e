import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.base import CRUDBase
from chatbot_admin.models.chat import CustomResponse
from chatbot_admin.models.client import Client, Statistic
from chatbot_admin.schemas.client import ClientCreate, ClientUpdate

logger = logging.getLogger('chatbot_admin')

STAT_MESSAGES = 'message_count'
STAT_USERS = 'user_count'
STAT_SUPPORT_REQUESTS = 'support_request_count'


class CRUDClient(CRUDBase[Client, ClientCreate, ClientUpdate]):
    async def create_client(
        self, session: AsyncSession, client_in: ClientCreate
    ) -> Client:
        client = await self.create(client_in, session, commit=False)
        session.add(Statistic(client_id=client.id))
        await session.commit()
        await session.refresh(client)
        logger.info(f'Клиент {client.id} создан вместе со статистикой')
        return client

    async def remove_client(
        self, session: AsyncSession, client: Client
    ) -> None:
        await session.execute(
            delete(CustomResponse).where(
                CustomResponse.client_id == client.id
            )
        )
        await session.execute(
            delete(Statistic).where(Statistic.client_id == client.id)
        )
        await self.remove(client, session, commit=False)
        await session.commit()


class CRUDStatistic:
    async def get_by_client(
        self, session: AsyncSession, client_id: int
    ) -> Statistic | None:
        result = await session.execute(
            select(Statistic)
            .where(Statistic.client_id == client_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def increment(
        self, session: AsyncSession, client_id: int, field: str
    ) -> None:
        """Атомарный UPDATE col = col + 1, без чтения текущего значения.

        Коммит остаётся за вызывающим кодом, чтобы счётчик попал в ту же
        транзакцию, что и сообщение.
        """
        column = getattr(Statistic, field)
        result = await session.execute(
            update(Statistic)
            .where(Statistic.client_id == client_id)
            .values({field: column + 1})
        )
        if result.rowcount == 0:
            logger.warning(
                f'Нет строки статистики для клиента {client_id}, создаём'
            )
            session.add(Statistic(client_id=client_id, **{field: 1}))
            await session.flush()

    async def increment_message_count(
        self, session: AsyncSession, client_id: int
    ) -> None:
        await self.increment(session, client_id, STAT_MESSAGES)

    async def increment_user_count(
        self, session: AsyncSession, client_id: int
    ) -> None:
        await self.increment(session, client_id, STAT_USERS)

    async def increment_support_request_count(
        self, session: AsyncSession, client_id: int
    ) -> None:
        await self.increment(session, client_id, STAT_SUPPORT_REQUESTS)

    async def totals(self, session: AsyncSession) -> dict[str, int]:
        total_bots = (
            await session.execute(select(func.count(Client.id)))
        ).scalar_one()
        row = (
            await session.execute(
                select(
                    func.coalesce(func.sum(Statistic.message_count), 0),
                    func.coalesce(func.sum(Statistic.user_count), 0),
                    func.coalesce(
                        func.sum(Statistic.support_request_count), 0
                    ),
                )
            )
        ).one()
        return {
            'total_bots': total_bots,
            'messages_today': row[0],
            'active_users': row[1],
            'support_requests': row[2],
        }


crud_client = CRUDClient(Client)
crud_statistic = CRUDStatistic()
