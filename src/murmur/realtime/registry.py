"""In-memory map from user identity to its live connection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from murmur.db.time import utcnow
from murmur.realtime.connection import Connection


@dataclass
class RegistryEntry:
    connection: Connection
    last_seen: datetime


class ConnectionRegistry:
    """At most one routable connection per user; the latest registration wins.

    All methods are synchronous, so each call is atomic with respect to the
    event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def register(self, user_id: str, connection: Connection) -> Connection | None:
        """Make ``connection`` the routable handle for ``user_id``.

        Returns the connection it replaced, if any.
        """
        previous = self._entries.get(user_id)
        self._entries[user_id] = RegistryEntry(connection=connection, last_seen=utcnow())
        return previous.connection if previous else None

    def lookup(self, user_id: str) -> Connection | None:
        entry = self._entries.get(user_id)
        return entry.connection if entry else None

    def unregister(self, user_id: str, connection: Connection) -> bool:
        """Remove ``user_id`` only if ``connection`` is still its current handle.

        A late disconnect from a replaced connection leaves the newer one in place.
        """
        entry = self._entries.get(user_id)
        if entry is None or entry.connection is not connection:
            return False
        del self._entries[user_id]
        return True

    def touch(self, user_id: str) -> None:
        entry = self._entries.get(user_id)
        if entry is not None:
            entry.last_seen = utcnow()

    def last_seen(self, user_id: str) -> datetime | None:
        entry = self._entries.get(user_id)
        return entry.last_seen if entry else None

    def connections(self, *, exclude_user: str | None = None) -> list[Connection]:
        """Snapshot of registered connections, optionally skipping one identity."""
        return [
            entry.connection
            for user_id, entry in self._entries.items()
            if user_id != exclude_user
        ]

    def clear(self) -> list[Connection]:
        """Drop every entry and return the connections that were registered."""
        connections = [entry.connection for entry in self._entries.values()]
        self._entries.clear()
        return connections
