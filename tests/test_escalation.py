import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from chatbot_admin.crud.chat import crud_chat_message, crud_chat_session
from chatbot_admin.crud.client import crud_statistic
from chatbot_admin.crud.support import crud_support_message
from chatbot_admin.models.chat import ChatMessage, ChatSession
from chatbot_admin.models.support import SupportChat, SupportStatus
from chatbot_admin.services import escalation, support
from chatbot_admin.services.exceptions import NotFoundError, ValidationError
from tests.test_constants import MATCHING_TEXT, UNMATCHED_TEXT
from tests.utils import FakeConnection


async def _count_support_chats(session) -> int:
    return (
        await session.execute(select(func.count(SupportChat.id)))
    ).scalar_one()


@pytest.mark.asyncio
async def test_matched_message_is_not_escalated(
    test_session, created_client, created_rules, created_chat_session,
    available_agent,
):
    result = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, MATCHING_TEXT
    )
    assert result.matched
    assert result.reply == '9h-18h'
    assert not result.escalated
    assert result.message.needs_support is False
    assert result.message.is_user_message is True
    assert await _count_support_chats(test_session) == 0

    stat = await crud_statistic.get_by_client(test_session, created_client.id)
    assert stat.message_count == 1
    assert stat.support_request_count == 0


@pytest.mark.asyncio
async def test_unmatched_message_creates_pending_chat(
    test_session, created_client, created_rules, created_chat_session,
    available_agent,
):
    result = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT
    )
    assert result.escalated
    assert not result.matched

    stored = await crud_chat_message.list_by_session(
        test_session, created_chat_session.id
    )
    assert len(stored) == 1
    assert stored[0].needs_support is True

    chat = result.support_chat
    assert chat.status == SupportStatus.PENDING
    assert chat.agent_id == available_agent.id
    assert chat.client_id == created_client.id
    assert chat.session_id == created_chat_session.id

    mirrored = await crud_support_message.list_by_chat(test_session, chat.id)
    assert len(mirrored) == 1
    assert mirrored[0].sender_id is None
    assert mirrored[0].content == UNMATCHED_TEXT
    assert mirrored[0].is_read is False

    stat = await crud_statistic.get_by_client(test_session, created_client.id)
    assert stat.message_count == 1
    assert stat.support_request_count == 1


@pytest.mark.asyncio
async def test_first_available_agent_is_selected(
    test_session, created_rules, created_chat_session, agent_factory
):
    await agent_factory('ana', is_available=False)
    second = await agent_factory('bia')
    await agent_factory('carla')

    result = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT
    )
    assert result.support_chat.agent_id == second.id


@pytest.mark.asyncio
async def test_no_available_agent_leaves_chat_unassigned(
    test_session, created_client, created_rules, created_chat_session,
    agent_factory,
):
    await agent_factory('ana', is_available=False)

    result = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT
    )
    assert result.escalated
    assert result.message.needs_support is True
    assert result.support_chat.agent_id is None
    assert result.support_chat.status == SupportStatus.PENDING
    assert await _count_support_chats(test_session) == 1


@pytest.mark.asyncio
async def test_open_chat_is_reused_for_same_session(
    test_session, created_rules, created_chat_session, available_agent
):
    first = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT
    )
    second = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, 'ainda estou esperando'
    )
    assert second.support_chat.id == first.support_chat.id
    assert await _count_support_chats(test_session) == 1

    messages = await crud_support_message.list_by_chat(
        test_session, first.support_chat.id
    )
    assert [m.content for m in messages] == [
        UNMATCHED_TEXT, 'ainda estou esperando'
    ]


@pytest.mark.asyncio
async def test_closed_chat_is_not_reused(
    test_session, created_rules, created_chat_session, available_agent
):
    first = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT
    )
    await support.transition(
        test_session, first.support_chat.id, SupportStatus.CLOSED
    )
    second = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, 'outra dúvida'
    )
    assert second.support_chat.id != first.support_chat.id
    assert second.support_chat.status == SupportStatus.PENDING


@pytest.mark.asyncio
async def test_session_without_client_is_stored_without_escalation(
    test_session, available_agent
):
    orphan = ChatSession(session_token='orphan-token')
    test_session.add(orphan)
    await test_session.commit()

    result = await escalation.handle_inbound_user_message(
        test_session, orphan.id, UNMATCHED_TEXT
    )
    assert not result.escalated
    assert result.message.id is not None
    assert await _count_support_chats(test_session) == 0


@pytest.mark.asyncio
async def test_blank_message_has_no_side_effects(
    test_session, created_client, created_chat_session
):
    with pytest.raises(ValidationError):
        await escalation.handle_inbound_user_message(
            test_session, created_chat_session.id, '   '
        )
    count = (
        await test_session.execute(select(func.count(ChatMessage.id)))
    ).scalar_one()
    assert count == 0
    stat = await crud_statistic.get_by_client(test_session, created_client.id)
    assert stat.message_count == 0


@pytest.mark.asyncio
async def test_unknown_session_is_not_found(test_session):
    with pytest.raises(NotFoundError):
        await escalation.handle_inbound_user_message(
            test_session, 777, UNMATCHED_TEXT
        )


@pytest.mark.asyncio
async def test_escalation_is_pushed_to_joined_agents(
    test_session, created_rules, created_chat_session, available_agent, hub
):
    first = await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT, hub=hub
    )
    agent_socket = FakeConnection()
    connection_id = hub.connect(agent_socket)
    hub.join(connection_id, first.support_chat.id, available_agent.user_id)

    await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, 'alô?', hub=hub
    )
    assert len(agent_socket.sent) == 1
    event = agent_socket.sent[0]
    assert event['type'] == 'support_message'
    assert event['message']['content'] == 'alô?'
    assert event['message']['sender_id'] is None


@pytest.mark.asyncio
async def test_concurrent_messages_do_not_lose_counts(
    session_factory, test_session, created_client, created_rules,
    created_chat_session,
):
    async def send(index):
        async with session_factory() as session:
            await escalation.handle_inbound_user_message(
                session, created_chat_session.id, f'horario {index}'
            )

    await asyncio.gather(*(send(i) for i in range(10)))

    stat = await crud_statistic.get_by_client(test_session, created_client.id)
    assert stat.message_count == 10


@pytest.mark.asyncio
async def test_concurrent_increments_are_atomic(
    session_factory, test_session, created_client
):
    async def bump():
        async with session_factory() as session:
            await crud_statistic.increment_support_request_count(
                session, created_client.id
            )
            await session.commit()

    await asyncio.gather(*(bump() for _ in range(10)))

    stat = await crud_statistic.get_by_client(test_session, created_client.id)
    assert stat.support_request_count == 10


@pytest.mark.asyncio
async def test_store_bot_reply(test_session, created_chat_session):
    reply = await escalation.store_bot_reply(
        test_session, created_chat_session.id, '9h-18h'
    )
    assert reply.is_user_message is False
    assert reply.needs_support is False


@pytest.mark.asyncio
async def test_manual_escalation_reuses_open_chat(
    test_session, created_client, created_chat_session, available_agent
):
    first = await escalation.escalate_manually(
        test_session, created_client.id, created_chat_session.id
    )
    second = await escalation.escalate_manually(
        test_session, created_client.id, created_chat_session.id
    )
    assert first.id == second.id
    assert first.agent_id == available_agent.id

    with pytest.raises(NotFoundError):
        await escalation.escalate_manually(
            test_session, created_client.id, created_chat_session.id,
            agent_id=999,
        )


@pytest.mark.asyncio
async def test_manual_escalation_rejects_session_of_other_client(
    test_session, created_client, other_client, created_chat_session,
    available_agent,
):
    with pytest.raises(ValidationError):
        await escalation.escalate_manually(
            test_session, other_client.id, created_chat_session.id
        )
    assert await _count_support_chats(test_session) == 0

    chat = await escalation.escalate_manually(
        test_session, created_client.id, created_chat_session.id
    )
    with pytest.raises(ValidationError):
        await escalation.escalate_manually(
            test_session, other_client.id, created_chat_session.id
        )
    await test_session.refresh(chat)
    assert chat.client_id == created_client.id
    assert await _count_support_chats(test_session) == 1


@pytest.mark.asyncio
async def test_concurrent_unmatched_messages_share_one_chat(
    session_factory, test_session, created_client, created_rules,
    created_chat_session, available_agent,
):
    async def send(index):
        async with session_factory() as session:
            result = await escalation.handle_inbound_user_message(
                session, created_chat_session.id, f'{UNMATCHED_TEXT} {index}'
            )
            return result.support_chat.id

    chat_ids = await asyncio.gather(*(send(i) for i in range(5)))

    assert len(set(chat_ids)) == 1
    assert await _count_support_chats(test_session) == 1
    messages = await crud_support_message.list_by_chat(
        test_session, chat_ids[0]
    )
    assert len(messages) == 5


@pytest.mark.asyncio
async def test_second_open_chat_for_session_is_refused(
    test_session, created_client, created_rules, created_chat_session,
    available_agent,
):
    await escalation.handle_inbound_user_message(
        test_session, created_chat_session.id, UNMATCHED_TEXT
    )
    test_session.add(
        SupportChat(
            client_id=created_client.id,
            session_id=created_chat_session.id,
            status=SupportStatus.PENDING,
        )
    )
    with pytest.raises(IntegrityError):
        await test_session.commit()
    await test_session.rollback()
    assert await _count_support_chats(test_session) == 1


@pytest.mark.asyncio
async def test_get_for_update(test_session, created_chat_session):
    locked = await crud_chat_session.get_for_update(
        test_session, created_chat_session.id
    )
    assert locked.id == created_chat_session.id
    assert await crud_chat_session.get_for_update(test_session, 999) is None
