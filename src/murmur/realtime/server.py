"""Realtime websocket server.

One ``RealtimeServer`` is created per application. It owns the connection
registry and room hub, authenticates each socket before accepting it and
dispatches decoded events to the presence, messaging, live-room and call
coordinators.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect, status

from murmur.core.settings import settings
from murmur.db.session import SessionFactory, SessionLocal, run_in_session
from murmur.realtime import events
from murmur.realtime.calls import CallSignalingRelay
from murmur.realtime.connection import Connection
from murmur.realtime.live import LiveRoomFanout
from murmur.realtime.messaging import DirectMessageRouter
from murmur.realtime.presence import PresenceCoordinator
from murmur.realtime.registry import ConnectionRegistry
from murmur.realtime.rooms import RoomHub
from murmur.services.auth import authenticate_token
from murmur.services.errors import AuthenticationFailure, PersistenceFailure, ServiceError

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Any], Awaitable[Any]]


def _authenticate_profile(db: Any, token: str | None) -> dict[str, Any]:
    return authenticate_token(db, token).public_profile()


def extract_token(websocket: WebSocket) -> str | None:
    """Return the handshake token from the query string or a Bearer header."""
    token = websocket.query_params.get(settings.ws_token_query_param)
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


class RealtimeServer:
    """Owns all in-memory realtime state for one process."""

    def __init__(
        self,
        session_factory: SessionFactory = SessionLocal,
        *,
        send_timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._send_timeout = (
            send_timeout if send_timeout is not None else settings.ws_send_timeout_seconds
        )
        self.registry = ConnectionRegistry()
        self.rooms = RoomHub()
        self.presence = PresenceCoordinator(self.registry, self.rooms, session_factory)
        self.messages = DirectMessageRouter(self.registry, self.rooms, session_factory)
        self.live = LiveRoomFanout(self.rooms, session_factory)
        self.calls = CallSignalingRelay(self.registry)

        self._handlers: dict[type[events.ClientEvent], Handler] = {
            events.JoinChat: self._on_join_chat,
            events.SendMessage: self._on_send_message,
            events.TypingStart: self._on_typing_start,
            events.TypingStop: self._on_typing_stop,
            events.JoinLiveRoom: self._on_join_live_room,
            events.LeaveLiveRoom: self._on_leave_live_room,
            events.LiveComment: self._on_live_comment,
            events.SendLiveGift: self._on_send_live_gift,
            events.CallUser: self._on_call_user,
            events.CallResponse: self._on_call_response,
            events.CallEnded: self._on_call_ended,
        }
        missing = set(events.CLIENT_EVENT_TYPES) - set(self._handlers)
        if missing:
            names = ", ".join(sorted(model.__name__ for model in missing))
            raise RuntimeError(f"No realtime handler registered for: {names}")

    # --- Connection lifecycle --------------------------------------------------------
    async def authenticate(self, token: str | None) -> dict[str, Any]:
        """Resolve a handshake token to the public profile of an active user."""
        return await run_in_session(self._session_factory, _authenticate_profile, token)

    async def serve(self, websocket: WebSocket) -> None:
        """Run one websocket from handshake to disconnect."""
        try:
            user = await self.authenticate(extract_token(websocket))
        except AuthenticationFailure as exc:
            logger.info("Rejected websocket handshake: %s", exc.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
            return
        except PersistenceFailure:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        await websocket.accept()
        connection = Connection(websocket, user, send_timeout=self._send_timeout)
        try:
            await self.presence.connect(connection)
            while True:
                raw = await websocket.receive_text()
                await self.dispatch(connection, raw)
        except WebSocketDisconnect:
            pass
        except ServiceError as exc:
            await connection.send_error(exc.message)
        finally:
            await self.presence.disconnect(connection)

    async def dispatch(self, connection: Connection, raw: str | bytes | dict[str, Any]) -> None:
        """Decode and handle one inbound frame; failures go back as ``error`` events."""
        connection.touch()
        self.registry.touch(connection.user_id)
        try:
            event = events.decode_frame(raw)
            await self._handlers[type(event)](connection, event)
        except ServiceError as exc:
            await connection.send_error(exc.message)
        except Exception:
            logger.exception("Unhandled error while processing event for user %s", connection.user_id)
            await connection.send_error("Internal server error")

    async def send_notification_to_user(self, user_id: str, notification: dict[str, Any]) -> bool:
        """Push a ``notification`` frame to ``user_id`` if it is connected."""
        connection = self.registry.lookup(user_id)
        if connection is None:
            return False
        return await connection.send("notification", notification)

    async def evict(self, user_id: str, reason: str = "Account is blocked") -> bool:
        """Force-close the live connection of ``user_id`` and run its offline transition.

        Called by whatever blocks accounts (an admin tool or moderation job sharing
        this process); Murmur itself has no block endpoint.
        """
        connection = self.registry.lookup(user_id)
        if connection is None:
            return False
        await connection.send_error(reason)
        await connection.close(code=status.WS_1008_POLICY_VIOLATION, reason=reason)
        await self.presence.disconnect(connection)
        return True

    async def close(self) -> None:
        """Close every connection and drop all in-memory state."""
        for connection in self.registry.clear():
            await connection.close(code=status.WS_1001_GOING_AWAY)
        self.rooms.clear()

    # --- Event handlers --------------------------------------------------------------
    async def _on_join_chat(self, connection: Connection, event: events.JoinChat) -> None:
        await self.messages.join_chat(connection, event.receiver_id)

    async def _on_send_message(self, connection: Connection, event: events.SendMessage) -> None:
        await self.messages.send(
            connection,
            event.receiver_id,
            content=event.content,
            message_type=event.message_type,
            image=event.image,
            video=event.video,
        )

    async def _on_typing_start(self, connection: Connection, event: events.TypingStart) -> None:
        await self.messages.typing(connection, event.receiver_id, active=True)

    async def _on_typing_stop(self, connection: Connection, event: events.TypingStop) -> None:
        await self.messages.typing(connection, event.receiver_id, active=False)

    async def _on_join_live_room(self, connection: Connection, event: events.JoinLiveRoom) -> None:
        await self.live.join(connection, event.room_id)

    async def _on_leave_live_room(
        self, connection: Connection, event: events.LeaveLiveRoom
    ) -> None:
        await self.live.leave(connection, event.room_id)

    async def _on_live_comment(self, connection: Connection, event: events.LiveComment) -> None:
        await self.live.comment(connection, event.room_id, event.comment)

    async def _on_send_live_gift(self, connection: Connection, event: events.SendLiveGift) -> None:
        await self.live.send_gift(
            connection,
            event.room_id,
            event.receiver_id,
            gift_type=event.gift_type,
            gift_name=event.gift_name,
            price=event.price,
        )

    async def _on_call_user(self, connection: Connection, event: events.CallUser) -> None:
        await self.calls.call_user(
            connection,
            event.receiver_id,
            type=event.type,
            agora_token=event.agora_token,
            channel_name=event.channel_name,
        )

    async def _on_call_response(self, connection: Connection, event: events.CallResponse) -> None:
        await self.calls.call_response(
            connection,
            event.caller_id,
            accepted=event.accepted,
            agora_token=event.agora_token,
            channel_name=event.channel_name,
        )

    async def _on_call_ended(self, connection: Connection, event: events.CallEnded) -> None:
        await self.calls.call_ended(connection, event.other_user_id)
