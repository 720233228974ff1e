import logging
from logging.handlers import RotatingFileHandler

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)

from chatbot_admin.core.base import (Base, ChatSession, Client,
                                     CustomResponse, SupportAgent, User)
from chatbot_admin.core.config import settings
from chatbot_admin.core.db import get_session
from chatbot_admin.crud.client import crud_client
from chatbot_admin.main import app
from chatbot_admin.models.user import UserRole
from chatbot_admin.schemas.client import ClientCreate
from chatbot_admin.services import sessions
from chatbot_admin.services.auth import get_password_hash
from chatbot_admin.services.realtime import SupportChatHub

logger = logging.getLogger('chatbot_admin')


@pytest.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(
        settings.get_database_url(test=True),
        echo=False,
        future=True,
        connect_args={'timeout': 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest.fixture(scope="function")
async def test_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def hub() -> SupportChatHub:
    hub = SupportChatHub()
    app.state.hub = hub
    return hub


@pytest.fixture
async def created_client(test_session: AsyncSession) -> Client:
    return await crud_client.create_client(
        test_session,
        ClientCreate(
            name='Loja',
            category='E-commerce',
            chat_title='Atendimento Loja',
            welcome_message='Olá! Como posso ajudar?',
        ),
    )


@pytest.fixture
async def created_rules(
        test_session: AsyncSession,
        created_client: Client
) -> list[CustomResponse]:
    rules = [
        CustomResponse(
            client_id=created_client.id,
            keyword='horario',
            response='9h-18h',
        ),
        CustomResponse(
            client_id=created_client.id,
            keyword='entrega',
            response='3 a 5 dias úteis',
        ),
        CustomResponse(
            client_id=created_client.id,
            keyword='humano',
            response='Desativado',
            is_active=False,
        ),
    ]
    test_session.add_all(rules)
    await test_session.commit()
    for rule in rules:
        await test_session.refresh(rule)
    return rules


@pytest.fixture
async def created_chat_session(
        test_session: AsyncSession,
        created_client: Client
) -> ChatSession:
    return await sessions.create_session(test_session, created_client.id)


async def make_agent(
    session: AsyncSession,
    username: str,
    is_available: bool = True,
    password: str = 'secret123',
) -> SupportAgent:
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        name=username.title(),
        email=f'{username}@example.com',
        role=UserRole.AGENT,
    )
    session.add(user)
    await session.flush()
    agent = SupportAgent(user_id=user.id, is_available=is_available)
    session.add(agent)
    await session.commit()
    await session.refresh(agent)
    return agent


@pytest.fixture
def agent_factory(test_session: AsyncSession):
    async def factory(username: str, is_available: bool = True):
        return await make_agent(test_session, username, is_available)
    return factory


@pytest.fixture
async def available_agent(test_session: AsyncSession) -> SupportAgent:
    return await make_agent(test_session, 'maria')


@pytest.fixture(scope='function')
async def async_client(test_session: AsyncSession, hub: SupportChatHub):
    transport = ASGITransport(app=app)
    async with AsyncClient(
            transport=transport,
            base_url='http://test'
    ) as client:
        yield client


@pytest.fixture(scope='function', autouse=True)
async def override_dependencies(session_factory):
    """
    Fixture that automatically overrides dependencies for all tests.
    """
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        handler = RotatingFileHandler(
            "test_chatbot_admin.log",
            maxBytes=2000,
            backupCount=100
        )
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    logger.debug("Dependencies overridden for the test")

    yield

    app.dependency_overrides.clear()
    logger.debug("Dependencies overrides cleared after the test")


@pytest.fixture
async def other_client(test_session: AsyncSession) -> Client:
    return await crud_client.create_client(
        test_session,
        ClientCreate(
            name='Restaurante',
            category='Alimentação',
            chat_title='Atendimento Restaurante',
            welcome_message='Olá!',
        ),
    )
