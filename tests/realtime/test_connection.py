"""Tests for a single websocket connection wrapper."""

import asyncio

import pytest
from fastapi import WebSocketDisconnect

from murmur.realtime.connection import Connection
from tests.factories import FakeSocket

PROFILE = {"id": "alice", "username": "alice", "fullName": None, "profileImage": None}


@pytest.mark.asyncio
async def test_send_wraps_payload_in_frame() -> None:
    socket = FakeSocket()
    conn = Connection(socket, PROFILE)

    assert await conn.send("joined_chat", {"chatRoomId": "a_b"}) is True
    assert socket.sent == [{"event": "joined_chat", "data": {"chatRoomId": "a_b"}}]
    assert conn.user_id == "alice"


@pytest.mark.asyncio
async def test_send_error_uses_error_event() -> None:
    socket = FakeSocket()
    conn = Connection(socket, PROFILE)

    await conn.send_error("Invalid token")

    assert socket.sent == [{"event": "error", "data": {"message": "Invalid token"}}]


@pytest.mark.asyncio
async def test_failed_send_marks_connection_closed() -> None:
    socket = FakeSocket(fail_with=WebSocketDisconnect(code=1006))
    conn = Connection(socket, PROFILE)

    assert await conn.send("ping", {}) is False
    assert conn.closed is True

    socket.fail_with = None
    assert await conn.send("ping", {}) is False
    assert socket.sent == []


@pytest.mark.asyncio
async def test_slow_socket_times_out() -> None:
    class SlowSocket(FakeSocket):
        async def send_json(self, data, mode="text"):
            await asyncio.sleep(5)

    conn = Connection(SlowSocket(), PROFILE, send_timeout=0.01)

    assert await conn.send("ping", {}) is False
    assert conn.closed is True


@pytest.mark.asyncio
async def test_close_is_idempotent() -> None:
    socket = FakeSocket()
    conn = Connection(socket, PROFILE)

    await conn.close(code=1008, reason="Account is blocked")
    socket.closed_with = None
    await conn.close(code=1000)

    assert conn.closed is True
    assert socket.closed_with is None
