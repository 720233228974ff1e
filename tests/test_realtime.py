import pytest

from chatbot_admin.api.ws import handle_socket_event
from chatbot_admin.models.support import SupportStatus
from chatbot_admin.services import escalation, sessions, support
from chatbot_admin.services.exceptions import ConflictError
from chatbot_admin.services.realtime import SupportChatHub
from tests.test_constants import UNMATCHED_TEXT
from tests.utils import FakeConnection


@pytest.fixture
async def two_chats(
    test_session, created_client, created_rules, available_agent
):
    chats = []
    for _ in range(2):
        chat_session = await sessions.create_session(
            test_session, created_client.id
        )
        result = await escalation.handle_inbound_user_message(
            test_session, chat_session.id, UNMATCHED_TEXT
        )
        chats.append(result.support_chat)
    return chats


def test_join_overwrites_previous_membership():
    hub = SupportChatHub()
    connection_id = hub.connect(FakeConnection())
    hub.join(connection_id, 42, participant_id=7)
    hub.join(connection_id, 99, participant_id=7)
    assert hub.members(42) == []
    assert hub.members(99) == [connection_id]
    assert hub.membership(connection_id).participant_id == 7


def test_join_unknown_connection():
    hub = SupportChatHub()
    with pytest.raises(KeyError):
        hub.join('missing', 1)


def test_disconnect_drops_registration():
    hub = SupportChatHub()
    connection_id = hub.connect(FakeConnection())
    hub.join(connection_id, 1)
    hub.disconnect(connection_id)
    assert hub.members(1) == []
    assert hub.membership(connection_id) is None


@pytest.mark.asyncio
async def test_publish_reaches_only_joined_connections(
    test_session, two_chats, available_agent
):
    first, second = two_chats
    hub = SupportChatHub()
    joined = FakeConnection()
    other_chat = FakeConnection()
    not_joined = FakeConnection()
    hub.join(hub.connect(joined), first.id, available_agent.user_id)
    hub.join(hub.connect(other_chat), second.id)
    hub.connect(not_joined)

    await hub.publish(test_session, second.id, 'para o outro chat', None)
    assert joined.sent == []

    message = await hub.publish(
        test_session, first.id, 'Olá!', available_agent.user_id
    )
    assert len(joined.sent) == 1
    assert joined.sent[0]['type'] == 'support_message'
    assert joined.sent[0]['message']['id'] == message.id
    assert joined.sent[0]['message']['chat_id'] == first.id
    assert len(other_chat.sent) == 1
    assert not_joined.sent == []


@pytest.mark.asyncio
async def test_publish_persists_before_delivery(
    test_session, two_chats, available_agent
):
    chat = two_chats[0]
    hub = SupportChatHub()
    socket = FakeConnection()
    hub.join(hub.connect(socket), chat.id)

    await hub.publish(
        test_session, chat.id, 'persistido', available_agent.user_id
    )
    history = await support.list_messages(test_session, chat.id)
    assert history[-1].content == 'persistido'
    assert socket.sent[0]['message']['id'] == history[-1].id


@pytest.mark.asyncio
async def test_dead_connection_is_dropped(
    test_session, two_chats, available_agent
):
    chat = two_chats[0]
    hub = SupportChatHub()
    alive = FakeConnection()
    dead = FakeConnection(fail=True)
    hub.join(hub.connect(alive), chat.id)
    dead_id = hub.connect(dead)
    hub.join(dead_id, chat.id)

    await hub.publish(test_session, chat.id, 'oi', available_agent.user_id)
    assert len(alive.sent) == 1
    assert dead_id not in hub.members(chat.id)


@pytest.mark.asyncio
async def test_publish_to_closed_chat_is_rejected(
    test_session, two_chats, available_agent
):
    chat = two_chats[0]
    await support.transition(test_session, chat.id, SupportStatus.CLOSED)
    hub = SupportChatHub()
    socket = FakeConnection()
    hub.join(hub.connect(socket), chat.id)

    with pytest.raises(ConflictError):
        await hub.publish(test_session, chat.id, 'oi', None)
    assert socket.sent == []


@pytest.mark.asyncio
async def test_socket_events(test_session, two_chats, available_agent):
    chat = two_chats[0]
    hub = SupportChatHub()
    socket = FakeConnection()
    connection_id = hub.connect(socket)

    reply = await handle_socket_event(
        hub, test_session, connection_id,
        {
            'type': 'join_support_chat',
            'chatId': chat.id,
            'userId': available_agent.user_id,
        },
    )
    assert reply == {'type': 'joined', 'chatId': chat.id}

    reply = await handle_socket_event(
        hub, test_session, connection_id,
        {'type': 'support_message', 'chatId': chat.id, 'content': 'Olá'},
    )
    assert reply is None
    assert socket.sent[0]['message']['content'] == 'Olá'
    assert socket.sent[0]['message']['sender_id'] == available_agent.user_id

    reply = await handle_socket_event(
        hub, test_session, connection_id,
        {'type': 'join_support_chat', 'chatId': 123456},
    )
    assert reply['type'] == 'error'

    reply = await handle_socket_event(
        hub, test_session, connection_id, {'type': 'support_message'}
    )
    assert reply['type'] == 'error'

    reply = await handle_socket_event(
        hub, test_session, connection_id, {'type': 'typing'}
    )
    assert reply['type'] == 'error'

    reply = await handle_socket_event(hub, test_session, connection_id, [])
    assert reply['type'] == 'error'


@pytest.mark.asyncio
async def test_socket_message_from_unknown_user(
    test_session, two_chats, available_agent
):
    chat = two_chats[0]
    hub = SupportChatHub()
    socket = FakeConnection()
    connection_id = hub.connect(socket)
    hub.join(connection_id, chat.id, participant_id=9999)

    reply = await handle_socket_event(
        hub, test_session, connection_id,
        {'type': 'support_message', 'chatId': chat.id, 'content': 'Olá'},
    )
    assert reply['type'] == 'error'
    assert socket.sent == []
    history = await support.list_messages(test_session, chat.id)
    assert len(history) == 1
