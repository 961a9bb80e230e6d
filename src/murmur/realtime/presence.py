"""Online/offline transitions and their broadcast."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from murmur.db.session import SessionFactory, run_in_session
from murmur.realtime.connection import Connection
from murmur.realtime.registry import ConnectionRegistry
from murmur.realtime.rooms import RoomHub, fan_out
from murmur.services import user_service
from murmur.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class PresenceCoordinator:
    """Moves a user between Offline and Online as its connection comes and goes.

    Transitions for one identity run one at a time, so a quick reconnect can
    never have its online state overwritten by the previous socket's offline
    persist or broadcast.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        rooms: RoomHub,
        session_factory: SessionFactory,
    ) -> None:
        self.registry = registry
        self.rooms = rooms
        self._session_factory = session_factory
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiting: Counter[str] = Counter()

    @asynccontextmanager
    async def _transition(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._waiting[user_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiting[user_id] -= 1
            if not self._waiting[user_id]:
                del self._waiting[user_id]
                del self._locks[user_id]

    async def connect(self, connection: Connection) -> None:
        """Register an authenticated connection, persist online and tell everyone else."""
        async with self._transition(connection.user_id):
            if connection.closed:
                # Disconnected while an earlier transition held the identity.
                return
            replaced = self.registry.register(connection.user_id, connection)
            if replaced is not None:
                logger.info(
                    "User %s reconnected; %r no longer routable", connection.user_id, replaced
                )
            logger.info("User %s connected: %s", connection.user_id, connection.id)

            await run_in_session(
                self._session_factory, user_service.set_presence, connection.user_id, True
            )
            await fan_out(
                self.registry.connections(exclude_user=connection.user_id),
                "user_online",
                {"userId": connection.user_id, "user": connection.user},
            )

    async def disconnect(self, connection: Connection) -> bool:
        """Tear down ``connection`` and broadcast offline if it was still current.

        The connection is marked closed and leaves its rooms before anything is
        awaited, so no broadcast reaches the departing socket. Returns False when a
        newer connection owns the identity, in which case the user stays online.
        A failed offline persist is logged and peers still get ``user_offline``.
        """
        connection.closed = True
        self.rooms.leave_all(connection)
        async with self._transition(connection.user_id):
            if not self.registry.unregister(connection.user_id, connection):
                logger.info(
                    "Stale connection %s for user %s closed", connection.id, connection.user_id
                )
                return False

            logger.info("User %s disconnected: %s", connection.user_id, connection.id)
            try:
                await run_in_session(
                    self._session_factory, user_service.set_presence, connection.user_id, False
                )
            except PersistenceFailure:
                logger.error("Could not persist offline state for user %s", connection.user_id)
            await fan_out(
                self.registry.connections(exclude_user=connection.user_id),
                "user_offline",
                {"userId": connection.user_id},
            )
            return True
