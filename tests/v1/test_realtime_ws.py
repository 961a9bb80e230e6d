"""End-to-end tests for the websocket endpoint."""

import pytest
from fastapi import WebSocketDisconnect, status
from sqlalchemy import select

from murmur.core.security import create_access_token
from murmur.models import Message, Notification, User
from tests.factories import make_user


@pytest.fixture
def ws_users(file_db):
    alice = make_user(file_db, username="alice", full_name="Alice Liddell")
    bob = make_user(file_db, username="bob", full_name="Bob Builder")
    return alice, bob


def _url(user=None) -> str:
    if user is None:
        return "/api/v1/ws"
    return f"/api/v1/ws?token={create_access_token(user.id)}"


@pytest.mark.parametrize(
    ("url", "reason"),
    [
        ("/api/v1/ws", "No token provided"),
        ("/api/v1/ws?token=garbage", "Invalid token"),
        (f"/api/v1/ws?token={create_access_token('ghost')}", "User not found"),
    ],
)
def test_handshake_rejects_bad_tokens(client, use_realtime_server, url, reason) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(url):
            pass

    assert exc_info.value.code == status.WS_1008_POLICY_VIOLATION
    assert exc_info.value.reason == reason
    assert len(use_realtime_server.registry) == 0


def test_handshake_rejects_blocked_account(client, use_realtime_server, file_db) -> None:
    banned = make_user(file_db, is_blocked=True)

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(_url(banned)):
            pass

    assert exc_info.value.code == status.WS_1008_POLICY_VIOLATION
    assert exc_info.value.reason == "Account is blocked"


def test_presence_and_message_delivery(
    client, use_realtime_server, ws_users, session_factory
) -> None:
    alice, bob = ws_users
    bob_headers = {"Authorization": f"Bearer {create_access_token(bob.id)}"}

    with client.websocket_connect("/api/v1/ws", headers=bob_headers) as bob_ws:
        with client.websocket_connect(_url(alice)) as alice_ws:
            online = bob_ws.receive_json()
            assert online["event"] == "user_online"
            assert online["data"]["userId"] == alice.id
            assert online["data"]["user"]["fullName"] == "Alice Liddell"

            alice_ws.send_json({"event": "join_chat", "data": {"receiverId": bob.id}})
            assert alice_ws.receive_json()["event"] == "joined_chat"
            bob_ws.send_json({"event": "join_chat", "data": {"receiverId": alice.id}})
            joined = bob_ws.receive_json()
            assert joined["data"]["chatRoomId"] == "_".join(sorted((alice.id, bob.id)))

            alice_ws.send_json(
                {"event": "send_message", "data": {"receiverId": bob.id, "content": "hi bob"}}
            )
            delivered = bob_ws.receive_json()
            echoed = alice_ws.receive_json()

            assert delivered["event"] == "new_message"
            assert delivered["data"]["content"] == "hi bob"
            assert echoed == delivered

            with session_factory() as db:
                assert db.get(User, alice.id).is_online is True

        offline = bob_ws.receive_json()
        assert offline == {"event": "user_offline", "data": {"userId": alice.id}}

    with session_factory() as db:
        assert db.execute(select(Message)).scalars().one().content == "hi bob"
        assert db.execute(select(Notification)).scalars().all() == []
        assert db.get(User, alice.id).is_online is False
        assert db.get(User, bob.id).is_online is False
    assert len(use_realtime_server.registry) == 0


def test_bad_frames_return_errors_without_closing(client, use_realtime_server, ws_users) -> None:
    alice, bob = ws_users

    with client.websocket_connect(_url(alice)) as ws:
        ws.send_text("this is not json")
        assert ws.receive_json() == {"event": "error", "data": {"message": "Malformed frame"}}

        ws.send_json({"event": "send_message", "data": {"receiverId": alice.id, "content": "me"}})
        assert ws.receive_json() == {
            "event": "error",
            "data": {"message": "Cannot send message to yourself"},
        }

        ws.send_json({"event": "join_live_room", "data": {"roomId": "9"}})
        ws.send_json({"event": "live_comment", "data": {"roomId": "9", "comment": "still here"}})
        comment = ws.receive_json()
        assert comment["event"] == "new_live_comment"
        assert comment["data"]["comment"] == "still here"


def _wait_ready(ws, other_id: str) -> None:
    # Events are only read once the connection is registered, so a reply proves it.
    ws.send_json({"event": "join_chat", "data": {"receiverId": other_id}})
    assert ws.receive_json()["event"] == "joined_chat"


def test_reconnect_replaces_previous_connection(client, use_realtime_server, ws_users) -> None:
    alice, bob = ws_users

    with client.websocket_connect(_url(alice)) as first_ws:
        _wait_ready(first_ws, bob.id)
        first = use_realtime_server.registry.lookup(alice.id)
        with client.websocket_connect(_url(alice)) as second_ws:
            _wait_ready(second_ws, bob.id)
            second = use_realtime_server.registry.lookup(alice.id)
            assert second is not None
            assert second is not first
        assert use_realtime_server.registry.lookup(alice.id) is None
