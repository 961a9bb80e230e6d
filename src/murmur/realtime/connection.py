"""A single authenticated websocket connection."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Protocol

from fastapi import WebSocketDisconnect

from murmur.db.time import utcnow
from murmur.realtime.events import frame

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """The subset of ``fastapi.WebSocket`` the realtime layer relies on."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class Connection:
    """Authenticated socket plus the profile of the user behind it.

    Sends are serialized per connection so frames from concurrent broadcasts
    never interleave on the wire.
    """

    def __init__(
        self,
        transport: Transport,
        user: dict[str, Any],
        *,
        send_timeout: float | None = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.transport = transport
        self.user = user
        self.user_id: str = user["id"]
        self.connected_at: datetime = utcnow()
        self.last_seen: datetime = self.connected_at
        self.closed = False
        self._send_timeout = send_timeout
        self._send_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id!r})"

    def touch(self) -> None:
        self.last_seen = utcnow()

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        """Send one frame; returns False if the socket is already gone."""
        if self.closed:
            return False
        async with self._send_lock:
            try:
                await asyncio.wait_for(
                    self.transport.send_json(frame(event, data)), timeout=self._send_timeout
                )
            except (WebSocketDisconnect, RuntimeError, OSError, TimeoutError) as exc:
                logger.warning("Dropping %s to %r: %s", event, self, exc)
                self.closed = True
                return False
        return True

    async def send_error(self, message: str) -> bool:
        return await self.send("error", {"message": message})

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        """Close the underlying socket, ignoring sockets that are already closed."""
        if self.closed:
            return
        self.closed = True
        try:
            await self.transport.close(code=code, reason=reason)
        except (RuntimeError, OSError) as exc:
            logger.debug("Close of %r failed: %s", self, exc)
