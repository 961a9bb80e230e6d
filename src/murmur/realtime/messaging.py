"""Direct-message routing between two users."""

from __future__ import annotations

import logging
from typing import Any

from murmur.db.session import SessionFactory, run_in_session
from murmur.realtime.connection import Connection
from murmur.realtime.registry import ConnectionRegistry
from murmur.realtime.rooms import RoomHub, chat_room_id
from murmur.services import message_service, notification_service
from murmur.services.errors import ValidationFailure

logger = logging.getLogger(__name__)


def message_notification_title(sender: dict[str, Any]) -> str:
    name = sender.get("fullName") or sender.get("username") or "someone"
    return f"New message from {name}"


class DirectMessageRouter:
    """Persists messages and delivers them through the pair's chat room.

    A receiver without a live connection gets a durable notification instead.
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

    async def join_chat(self, connection: Connection, receiver_id: str) -> str:
        """Join the chat room shared with ``receiver_id`` and mark its backlog read."""
        room = chat_room_id(connection.user_id, receiver_id)
        self.rooms.join(room, connection)
        logger.debug("User %s joined chat room %s", connection.user_id, room)

        await run_in_session(
            self._session_factory,
            message_service.mark_conversation_read,
            connection.user_id,
            receiver_id,
        )
        await connection.send("joined_chat", {"chatRoomId": room, "receiverId": receiver_id})
        return room

    async def send(
        self,
        connection: Connection,
        receiver_id: str,
        *,
        content: str | None,
        message_type: str = "text",
        image: str | None = None,
        video: str | None = None,
    ) -> dict[str, Any]:
        """Persist and deliver a message from ``connection``'s user to ``receiver_id``.

        Raises:
            ValidationFailure: Self-message or empty message.
            NotFoundOrBlocked: Unknown or blocked receiver, or a block between the two.
        """
        sender_id = connection.user_id
        if sender_id == receiver_id:
            raise ValidationFailure("Cannot send message to yourself")

        payload = await run_in_session(
            self._session_factory,
            message_service.create_message,
            sender_id,
            receiver_id,
            content=content,
            message_type=message_type,
            image=image,
            video=video,
        )

        room = chat_room_id(sender_id, receiver_id)
        await self.rooms.broadcast(room, "new_message", payload)

        receiver = self.registry.lookup(receiver_id)
        # A socket whose last send failed is still registered until its disconnect runs.
        if receiver is None or receiver.closed:
            await run_in_session(
                self._session_factory,
                notification_service.create_notification,
                receiver_id,
                title=message_notification_title(connection.user),
                body=content or message_service.MEDIA_PLACEHOLDER,
                type="message",
                data={"senderId": sender_id, "messageId": payload["id"]},
            )

        logger.info("Message sent from %s to %s", sender_id, receiver_id)
        return payload

    async def typing(self, connection: Connection, receiver_id: str, *, active: bool) -> int:
        """Relay a typing indicator to the other members of the pair's room."""
        room = chat_room_id(connection.user_id, receiver_id)
        if active:
            data = {"userId": connection.user_id, "user": connection.user}
            return await self.rooms.broadcast(room, "user_typing", data, exclude=connection)
        return await self.rooms.broadcast(
            room, "user_stopped_typing", {"userId": connection.user_id}, exclude=connection
        )
