import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatbot_admin.core.db import Base

logger = logging.getLogger('chatbot_admin')

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        """
        CRUD object with default methods to
        Create, Read, Update, Delete (CRUD).

        **Parameters**

        * `model`: A SQLAlchemy model class
        """
        self.model = model

    async def get(
            self,
            session: AsyncSession,
            obj_id: int
    ) -> ModelType:
        result = await self.get_or_none(session, obj_id)
        if not result:
            raise HTTPException(
                status_code=404,
                detail=f'{self.model.__name__} not found'
            )
        return result

    async def get_or_none(
            self,
            session: AsyncSession,
            obj_id: int
    ) -> Optional[ModelType]:
        db_obj = await session.execute(
            select(self.model).where(self.model.id == obj_id)
        )
        return db_obj.scalars().first()

    async def get_multi(
            self,
            session: AsyncSession,
    ) -> List[ModelType]:
        db_objs = await session.execute(
            select(self.model).order_by(self.model.id)
        )
        return db_objs.scalars().all()

    async def create(
            self,
            obj_in,
            session: AsyncSession,
            commit: bool = True,
    ) -> ModelType:
        try:
            logger.debug(f'Создание объекта: {obj_in}')
            if isinstance(obj_in, dict):
                obj_in_data = obj_in
            else:
                obj_in_data = obj_in.model_dump()

            db_obj = self.model(**obj_in_data)
            session.add(db_obj)
            await session.flush()
            await session.refresh(db_obj)
            logger.debug(
                f'{self.model.__name__} создан и добавлен в сессию: '
                f'id={db_obj.id}'
            )

            if commit:
                await session.commit()
                await session.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            logger.error(f'Database error occurred: {e}')
            await session.rollback()
            raise HTTPException(
                status_code=500,
                detail=f'Internal Server Error during create '
                       f'{self.model.__name__}'
            )

    async def update(
            self,
            db_obj: ModelType,
            obj_in: Union[UpdateSchemaType, Dict[str, Any]],
            session: AsyncSession,
            commit: bool = True,
    ) -> ModelType:
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        session.add(db_obj)
        if commit:
            await session.commit()
            await session.refresh(db_obj)
        return db_obj

    async def remove(
            self,
            db_obj,
            session: AsyncSession,
            commit: bool = True,
    ) -> ModelType:
        await session.delete(db_obj)
        if commit:
            await session.commit()
        return db_obj
