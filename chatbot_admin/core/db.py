from functools import lru_cache

from sqlalchemy import Column, Integer
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import declarative_base, declared_attr

from chatbot_admin.core.config import settings


class PreBase:
    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower()
    id = Column(Integer, primary_key=True)


Base = declarative_base(cls=PreBase)


@lru_cache
def get_engine(test=False):
    """
    Lazily initializes and returns the database engine.
    """

    database_url = settings.get_database_url(test)
    engine_kwargs = {'echo': settings.database_echo, 'future': True}
    if database_url.startswith('sqlite'):
        # sqlite держит блокировку на запись, ждём её вместо ошибки
        engine_kwargs['connect_args'] = {'timeout': 30}
    else:
        engine_kwargs.update(pool_size=5, max_overflow=10)
    return create_async_engine(database_url, **engine_kwargs)


def get_async_session(test=False):
    engine = get_engine(test)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


async def get_session():
    """
    Dependency-injected session generator for FastAPI routes.
    """
    async_session = get_async_session()
    async with async_session() as session:
        yield session
