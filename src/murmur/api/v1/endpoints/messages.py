"""Direct message endpoints for the Murmur API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from murmur.api.v1.dependencies import (
    CurrentUserDep,
    RealtimeServerDep,
    SessionDep,
    StorageDep,
    to_http_exception,
)
from murmur.schemas.message import MessageCreate
from murmur.services import message_service, notification_service
from murmur.services.errors import ServiceError
from murmur.services.storage import delete_media_quietly

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/conversations")
async def get_conversations(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict[str, Any]:
    """List the latest message of each conversation with unread counts."""
    conversations = message_service.get_conversations(
        db, current_user.id, page=page, limit=limit
    )
    return {"conversations": conversations, "pagination": {"page": page, "limit": limit}}


@router.get("/conversations/{user_id}")
async def get_conversation_messages(
    user_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
) -> dict[str, Any]:
    """Get messages exchanged with ``user_id`` and mark the incoming ones read.

    Args:
        user_id: The counterpart's user id
        current_user: Authenticated user
        db: Database session
        page: 1-based page number
        limit: Messages per page

    Returns:
        Messages oldest first plus pagination totals

    Raises:
        HTTPException: 404 for an unknown user, 403 when either side blocked the other
    """
    try:
        return message_service.get_conversation(
            db, current_user.id, user_id, page=page, limit=limit
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/send", status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    realtime: RealtimeServerDep,
) -> dict[str, Any]:
    """Send a message over HTTP; the websocket ``send_message`` event is preferred.

    Unlike the websocket path, this always stores a "New Message" notification
    and pushes it live when the receiver is connected.

    Args:
        message_data: Receiver, text and optional media references
        current_user: Authenticated sender
        db: Database session
        realtime: Running realtime server used for the live push

    Returns:
        Status plus the serialized message
    """
    try:
        message = message_service.create_message(
            db,
            current_user.id,
            message_data.receiver_id,
            content=message_data.content,
            message_type=message_data.message_type,
            image=message_data.image,
            video=message_data.video,
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    notification = notification_service.create_notification(
        db,
        message_data.receiver_id,
        title="New Message",
        body=f"{current_user.display_name} sent you a message",
        type="message",
        data={"senderId": current_user.id, "messageId": message["id"]},
    )
    await realtime.send_notification_to_user(message_data.receiver_id, notification)

    return {"status": "message_sent", "message": message}


@router.get("/unread-count")
async def get_unread_count(current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    """Count unread messages addressed to the current user."""
    return {"unreadCount": message_service.count_unread(db, current_user.id)}


@router.put("/{message_id}/read")
async def mark_message_read(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Mark a direct message as read."""
    try:
        message_service.mark_message_read(db, message_id, current_user.id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return {"status": "marked_as_read"}


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: StorageDep,
) -> dict[str, str]:
    """Delete a message sent by the current user and clean up its media.

    Args:
        message_id: Message to delete
        current_user: Authenticated user, who must be the sender
        db: Database session
        storage: Object-storage client; deletion failures are only logged

    Returns:
        Deletion status
    """
    try:
        media_refs = message_service.delete_message(db, message_id, current_user.id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    await delete_media_quietly(storage, media_refs)
    return {"status": "deleted"}
