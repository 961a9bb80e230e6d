"""Realtime presence, messaging, live-room and call-signaling layer."""

from .registry import ConnectionRegistry
from .rooms import RoomHub, chat_room_id, live_room_id
from .server import RealtimeServer

__all__ = [
    "ConnectionRegistry",
    "RealtimeServer",
    "RoomHub",
    "chat_room_id",
    "live_room_id",
]
