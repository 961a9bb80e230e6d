"""Tests for the connection registry."""

from murmur.realtime import ConnectionRegistry
from tests.factories import connect_fake

ALICE = {"id": "alice", "username": "alice", "fullName": None, "profileImage": None}
BOB = {"id": "bob", "username": "bob", "fullName": None, "profileImage": None}


def test_register_and_lookup() -> None:
    registry = ConnectionRegistry()
    conn = connect_fake(ALICE)

    assert registry.register("alice", conn) is None
    assert registry.lookup("alice") is conn
    assert "alice" in registry
    assert len(registry) == 1
    assert registry.lookup("bob") is None


def test_last_registration_wins() -> None:
    registry = ConnectionRegistry()
    first = connect_fake(ALICE)
    second = connect_fake(ALICE)

    registry.register("alice", first)
    assert registry.register("alice", second) is first
    assert registry.lookup("alice") is second
    assert len(registry) == 1


def test_stale_unregister_keeps_newer_connection() -> None:
    registry = ConnectionRegistry()
    first = connect_fake(ALICE)
    second = connect_fake(ALICE)
    registry.register("alice", first)
    registry.register("alice", second)

    assert registry.unregister("alice", first) is False
    assert registry.lookup("alice") is second

    assert registry.unregister("alice", second) is True
    assert registry.lookup("alice") is None
    assert registry.unregister("alice", second) is False


def test_connections_excludes_identity_and_touch_updates_last_seen() -> None:
    registry = ConnectionRegistry()
    alice = connect_fake(ALICE)
    bob = connect_fake(BOB)
    registry.register("alice", alice)
    registry.register("bob", bob)

    assert registry.connections(exclude_user="alice") == [bob]
    assert set(registry.connections()) == {alice, bob}

    before = registry.last_seen("bob")
    registry.touch("bob")
    assert registry.last_seen("bob") >= before
    assert registry.last_seen("nobody") is None
    registry.touch("nobody")


def test_clear_returns_registered_connections() -> None:
    registry = ConnectionRegistry()
    alice = connect_fake(ALICE)
    registry.register("alice", alice)

    assert registry.clear() == [alice]
    assert len(registry) == 0
