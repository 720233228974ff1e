from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.crud.base import CRUDBase
from chatbot_admin.models.user import User
from chatbot_admin.schemas.auth import UserLogin


class CRUDUser(CRUDBase[User, UserLogin, UserLogin]):
    async def get_by_username(
        self, session: AsyncSession, username: str
    ) -> Optional[User]:
        result = await session.execute(
            select(User).where(User.username == username.strip())
        )
        return result.scalars().first()


crud_user = CRUDUser(User)
