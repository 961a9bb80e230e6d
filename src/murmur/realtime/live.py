"""Live-stream rooms: viewers, comments and gifts."""

from __future__ import annotations

import logging
from typing import Any

from murmur.db.session import SessionFactory, run_in_session
from murmur.db.time import utcnow
from murmur.realtime.connection import Connection
from murmur.realtime.rooms import RoomHub, live_room_id
from murmur.services import gift_service

logger = logging.getLogger(__name__)


class LiveRoomFanout:
    """Membership and broadcast for live-stream viewers."""

    def __init__(self, rooms: RoomHub, session_factory: SessionFactory) -> None:
        self.rooms = rooms
        self._session_factory = session_factory

    async def join(self, connection: Connection, room_id: str) -> bool:
        room = live_room_id(room_id)
        if not self.rooms.join(room, connection):
            return False
        await self.rooms.broadcast(
            room,
            "viewer_joined",
            {"userId": connection.user_id, "user": connection.user},
            exclude=connection,
        )
        return True

    async def leave(self, connection: Connection, room_id: str) -> bool:
        room = live_room_id(room_id)
        if not self.rooms.leave(room, connection):
            return False
        await self.rooms.broadcast(room, "viewer_left", {"userId": connection.user_id})
        return True

    async def comment(self, connection: Connection, room_id: str, text: str) -> int:
        """Broadcast a comment to the whole room, the author's own connection included."""
        return await self.rooms.broadcast(
            live_room_id(room_id),
            "new_live_comment",
            {
                "userId": connection.user_id,
                "user": connection.user,
                "comment": text,
                "timestamp": utcnow().isoformat(),
            },
        )

    async def send_gift(
        self,
        connection: Connection,
        room_id: str,
        receiver_id: str,
        *,
        gift_type: str,
        gift_name: str,
        price: int,
    ) -> dict[str, Any]:
        """Transfer ``price`` to ``receiver_id`` and announce the gift to the room.

        Raises:
            InsufficientBalance: The sender cannot afford the gift; nothing changes.
        """
        await run_in_session(
            self._session_factory,
            gift_service.send_gift,
            connection.user_id,
            receiver_id,
            gift_type=gift_type,
            gift_name=gift_name,
            price=price,
        )
        data = {
            "sender": connection.user,
            "receiverId": receiver_id,
            "giftType": gift_type,
            "giftName": gift_name,
            "price": price,
            "timestamp": utcnow().isoformat(),
        }
        await self.rooms.broadcast(live_room_id(room_id), "live_gift_sent", data)
        return data
