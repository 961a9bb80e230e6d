"""Tests for live rooms and gift transfers."""

import asyncio

import pytest
from sqlalchemy import func, select

from murmur.models import Gift, User
from murmur.realtime.live import LiveRoomFanout
from murmur.realtime.rooms import RoomHub
from murmur.services.errors import InsufficientBalance
from tests.factories import connect_fake, make_user


def _balances(session_factory, user_id: str) -> tuple[int, int]:
    with session_factory() as db:
        row = db.execute(select(User.diamonds, User.coins).where(User.id == user_id)).one()
    return row.diamonds, row.coins


def _gift_count(session_factory) -> int:
    with session_factory() as db:
        return db.execute(select(func.count(Gift.id))).scalar_one()


@pytest.fixture
def live(session_factory) -> LiveRoomFanout:
    return LiveRoomFanout(RoomHub(), session_factory)


@pytest.mark.asyncio
async def test_join_announces_viewer_to_others_once(live, file_db):
    host = connect_fake(make_user(file_db, username="host"))
    viewer_user = make_user(file_db, username="viewer")
    viewer = connect_fake(viewer_user)
    await live.join(host, "7")

    assert await live.join(viewer, "7") is True
    assert await live.join(viewer, "7") is False

    assert host.transport.events("viewer_joined") == [
        {
            "event": "viewer_joined",
            "data": {"userId": viewer_user.id, "user": viewer_user.public_profile()},
        }
    ]
    assert viewer.transport.events("viewer_joined") == []


@pytest.mark.asyncio
async def test_leave_announces_only_for_members(live, file_db):
    host = connect_fake(make_user(file_db, username="host"))
    viewer = connect_fake(make_user(file_db, username="viewer"))
    await live.join(host, "7")
    await live.join(viewer, "7")

    assert await live.leave(viewer, "7") is True
    assert await live.leave(viewer, "7") is False

    assert len(host.transport.events("viewer_left")) == 1
    assert live.rooms.members("live_7") == [host]


@pytest.mark.asyncio
async def test_comment_echoes_to_author(live, file_db):
    host = connect_fake(make_user(file_db, username="host"))
    viewer = connect_fake(make_user(file_db, username="viewer"))
    await live.join(host, "7")
    await live.join(viewer, "7")

    delivered = await live.comment(viewer, "7", "great stream")

    assert delivered == 2
    echoed = viewer.transport.events("new_live_comment")[0]["data"]
    assert echoed["comment"] == "great stream"
    assert echoed["userId"] == viewer.user_id
    assert "timestamp" in echoed
    assert host.transport.events("new_live_comment")[0]["data"] == echoed


@pytest.mark.asyncio
async def test_gift_moves_balance_and_is_broadcast(live, file_db, session_factory):
    sender = make_user(file_db, username="fan", diamonds=100)
    host_user = make_user(file_db, username="host", coins=5)
    sender_conn = connect_fake(sender)
    host_conn = connect_fake(host_user)
    await live.join(host_conn, "7")
    await live.join(sender_conn, "7")

    data = await live.send_gift(
        sender_conn, "7", host_user.id, gift_type="rose", gift_name="Rose", price=30
    )

    assert _balances(session_factory, sender.id) == (70, 0)
    assert _balances(session_factory, host_user.id) == (0, 35)
    assert _gift_count(session_factory) == 1
    assert data["price"] == 30
    assert data["sender"] == sender.public_profile()
    assert host_conn.transport.events("live_gift_sent")[0]["data"] == data
    assert sender_conn.transport.events("live_gift_sent")[0]["data"] == data


@pytest.mark.asyncio
async def test_unaffordable_gift_changes_nothing(live, file_db, session_factory):
    sender = make_user(file_db, username="fan", diamonds=10)
    host_user = make_user(file_db, username="host")
    sender_conn = connect_fake(sender)
    host_conn = connect_fake(host_user)
    await live.join(host_conn, "7")

    with pytest.raises(InsufficientBalance):
        await live.send_gift(
            sender_conn, "7", host_user.id, gift_type="car", gift_name="Car", price=50
        )

    assert _balances(session_factory, sender.id) == (10, 0)
    assert _balances(session_factory, host_user.id) == (0, 0)
    assert _gift_count(session_factory) == 0
    assert host_conn.transport.events("live_gift_sent") == []


@pytest.mark.asyncio
async def test_concurrent_gifts_cannot_overdraw(live, file_db, session_factory):
    sender = make_user(file_db, username="fan", diamonds=100)
    host_user = make_user(file_db, username="host")
    sender_conn = connect_fake(sender)

    results = await asyncio.gather(
        *(
            live.send_gift(
                sender_conn, "7", host_user.id, gift_type="star", gift_name="Star", price=60
            )
            for _ in range(2)
        ),
        return_exceptions=True,
    )

    failures = [result for result in results if isinstance(result, BaseException)]
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientBalance)
    assert _balances(session_factory, sender.id) == (40, 0)
    assert _balances(session_factory, host_user.id) == (0, 60)
    assert _gift_count(session_factory) == 1
