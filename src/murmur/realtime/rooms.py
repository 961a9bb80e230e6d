"""Ephemeral room membership and broadcast.

Rooms are created by the first join and disappear when their last member
leaves. Chat rooms and live rooms share the same hub under distinct ids.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from murmur.realtime.connection import Connection


def chat_room_id(user_a: str, user_b: str) -> str:
    """Return the two-party room id; identical for both argument orders."""
    return "_".join(sorted((user_a, user_b)))


def live_room_id(room_id: str) -> str:
    return f"live_{room_id}"


async def fan_out(connections: Iterable[Connection], event: str, data: dict[str, Any]) -> int:
    """Send one frame to many connections concurrently; returns the delivered count."""
    results = await asyncio.gather(*(conn.send(event, data) for conn in connections))
    return sum(1 for delivered in results if delivered)


class RoomHub:
    """Room id -> member connections, with the reverse index for cleanup."""

    def __init__(self) -> None:
        self._members: dict[str, set[Connection]] = {}
        self._rooms_by_connection: dict[str, set[str]] = {}

    def join(self, room: str, connection: Connection) -> bool:
        """Add ``connection`` to ``room``; returns False if it was already a member."""
        members = self._members.setdefault(room, set())
        if connection in members:
            return False
        members.add(connection)
        self._rooms_by_connection.setdefault(connection.id, set()).add(room)
        return True

    def leave(self, room: str, connection: Connection) -> bool:
        """Remove ``connection`` from ``room``; returns False if it was not a member."""
        members = self._members.get(room)
        if not members or connection not in members:
            return False
        members.discard(connection)
        if not members:
            del self._members[room]

        rooms = self._rooms_by_connection.get(connection.id)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                del self._rooms_by_connection[connection.id]
        return True

    def leave_all(self, connection: Connection) -> list[str]:
        """Remove ``connection`` from every room it joined and return those rooms."""
        rooms = sorted(self._rooms_by_connection.get(connection.id, ()))
        for room in rooms:
            self.leave(room, connection)
        return rooms

    def members(self, room: str) -> list[Connection]:
        return list(self._members.get(room, ()))

    def is_member(self, room: str, connection: Connection) -> bool:
        return connection in self._members.get(room, ())

    def rooms_of(self, connection: Connection) -> set[str]:
        return set(self._rooms_by_connection.get(connection.id, ()))

    def __contains__(self, room: object) -> bool:
        return room in self._members

    def clear(self) -> None:
        self._members.clear()
        self._rooms_by_connection.clear()

    async def broadcast(
        self,
        room: str,
        event: str,
        data: dict[str, Any],
        *,
        exclude: Connection | None = None,
    ) -> int:
        """Send a frame to every member of ``room`` except ``exclude``."""
        targets = [conn for conn in self.members(room) if conn is not exclude]
        return await fan_out(targets, event, data)
