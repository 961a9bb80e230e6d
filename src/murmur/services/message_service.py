"""Persistence rules for direct messages."""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.orm import Session

from murmur.models import BlockedUser, Message, User
from murmur.models.message import MESSAGE_TYPES
from murmur.services.errors import (
    BlockedRelation,
    NotFound,
    NotFoundOrBlocked,
    PermissionDenied,
    ValidationFailure,
)

__all__ = [
    "MEDIA_PLACEHOLDER",
    "serialize_message",
    "has_block_relation",
    "ensure_can_message",
    "create_message",
    "mark_conversation_read",
    "mark_message_read",
    "delete_message",
    "get_conversation",
    "get_conversations",
    "count_unread",
]

MEDIA_PLACEHOLDER = "Sent a media file"


def _isoformat(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_message(message: Message) -> dict[str, Any]:
    """Serialize a Message into the payload used by HTTP and ``new_message`` events."""
    return {
        "id": message.id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "content": message.content,
        "messageType": message.message_type,
        "image": message.image,
        "video": message.video,
        "isRead": message.is_read,
        "createdAt": _isoformat(message.created_at),
        "sender": message.sender.public_profile() if message.sender else None,
    }


def _pair_filter(user_a: str, user_b: str) -> Any:
    return or_(
        and_(Message.sender_id == user_a, Message.receiver_id == user_b),
        and_(Message.sender_id == user_b, Message.receiver_id == user_a),
    )


def has_block_relation(db: Session, user_a: str, user_b: str) -> bool:
    """Return True if either user has blocked the other."""
    stmt = select(BlockedUser.id).where(
        or_(
            and_(BlockedUser.blocker_id == user_a, BlockedUser.blocked_id == user_b),
            and_(BlockedUser.blocker_id == user_b, BlockedUser.blocked_id == user_a),
        )
    )
    return db.execute(stmt.limit(1)).first() is not None


def ensure_can_message(db: Session, sender_id: str, receiver_id: str) -> User:
    """Validate that ``sender_id`` may message ``receiver_id`` and return the receiver.

    Raises:
        ValidationFailure: If the sender targets itself.
        NotFoundOrBlocked: If the receiver is unknown or its account is blocked.
        BlockedRelation: If either side has blocked the other.
    """
    if sender_id == receiver_id:
        raise ValidationFailure("Cannot send message to yourself")

    receiver = db.get(User, receiver_id)
    if receiver is None or receiver.is_blocked:
        raise NotFoundOrBlocked()

    if has_block_relation(db, sender_id, receiver_id):
        raise BlockedRelation()
    return receiver


def create_message(
    db: Session,
    sender_id: str,
    receiver_id: str,
    *,
    content: str | None,
    message_type: str = "text",
    image: str | None = None,
    video: str | None = None,
) -> dict[str, Any]:
    """Validate and persist a message, returning its serialized payload."""
    if message_type not in MESSAGE_TYPES:
        raise ValidationFailure(f"Unsupported message type: {message_type}")
    if not content and not image and not video:
        raise ValidationFailure("Message content or media is required")

    ensure_can_message(db, sender_id, receiver_id)

    message = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        message_type=message_type,
        image=image,
        video=video,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return serialize_message(message)


def mark_conversation_read(db: Session, reader_id: str, counterpart_id: str) -> int:
    """Mark every unread message from ``counterpart_id`` to ``reader_id`` as read.

    Safe to repeat; already-read messages are left untouched.
    """
    result = db.execute(
        update(Message)
        .where(
            Message.sender_id == counterpart_id,
            Message.receiver_id == reader_id,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0


def mark_message_read(db: Session, message_id: int, user_id: str) -> None:
    """Mark a single message read on behalf of its receiver."""
    message = db.get(Message, message_id)
    if message is None:
        raise NotFound("Message not found")
    if message.receiver_id != user_id:
        raise PermissionDenied("Not authorized to mark this message as read")
    if message.is_read:
        raise ValidationFailure("Message already marked as read")

    message.is_read = True
    db.commit()


def delete_message(db: Session, message_id: int, user_id: str) -> list[str]:
    """Delete a message owned by its sender and return its media references."""
    message = db.get(Message, message_id)
    if message is None:
        raise NotFound("Message not found")
    if message.sender_id != user_id:
        raise PermissionDenied("Not authorized to delete this message")

    media_refs = message.media_refs
    db.delete(message)
    db.commit()
    return media_refs


def get_conversation(
    db: Session,
    user_id: str,
    other_user_id: str,
    *,
    page: int = 1,
    limit: int = 50,
) -> dict[str, Any]:
    """Return one page of the conversation and mark incoming messages read."""
    other = db.get(User, other_user_id)
    if other is None:
        raise NotFound("User not found")
    if has_block_relation(db, user_id, other_user_id):
        raise BlockedRelation("Cannot access messages with blocked user")

    pair = _pair_filter(user_id, other_user_id)
    messages = (
        db.execute(
            select(Message)
            .where(pair)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    total = db.execute(select(func.count(Message.id)).where(pair)).scalar_one()
    payload = [serialize_message(message) for message in reversed(messages)]

    mark_conversation_read(db, user_id, other_user_id)

    return {
        "messages": payload,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


def get_conversations(
    db: Session,
    user_id: str,
    *,
    page: int = 1,
    limit: int = 20,
) -> list[dict[str, Any]]:
    """Return the latest message exchanged with each counterpart, newest first.

    The newest message per counterpart is picked and paged in SQL, so a request
    touches one page of conversations, not the user's whole history.
    """
    counterpart = case(
        (Message.sender_id == user_id, Message.receiver_id), else_=Message.sender_id
    )
    latest_ids = (
        select(func.max(Message.id).label("message_id"))
        .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
        .group_by(counterpart)
        .subquery()
    )
    messages = (
        db.execute(
            select(Message)
            .join(latest_ids, Message.id == latest_ids.c.message_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    if not messages:
        return []

    window = [
        (message.receiver_id if message.sender_id == user_id else message.sender_id, message)
        for message in messages
    ]
    other_ids = [other_id for other_id, _ in window]

    unread_rows = db.execute(
        select(Message.sender_id, func.count(Message.id))
        .where(
            Message.receiver_id == user_id,
            Message.sender_id.in_(other_ids),
            Message.is_read.is_(False),
        )
        .group_by(Message.sender_id)
    ).all()
    unread = {sender_id: count for sender_id, count in unread_rows}

    others = {
        user.id: user
        for user in db.execute(select(User).where(User.id.in_(other_ids))).scalars().all()
    }

    conversations = []
    for other_id, message in window:
        other = others.get(other_id)
        conversations.append(
            {
                "otherUser": {
                    **(other.public_profile() if other else {"id": other_id}),
                    "isVerified": other.is_verified if other else False,
                    "isOnline": other.is_online if other else False,
                    "lastActive": _isoformat(other.last_active) if other else None,
                },
                "lastMessage": serialize_message(message),
                "unreadCount": unread.get(other_id, 0),
            }
        )
    return conversations


def count_unread(db: Session, user_id: str) -> int:
    """Return the number of unread messages addressed to ``user_id``."""
    stmt = select(func.count(Message.id)).where(
        Message.receiver_id == user_id, Message.is_read.is_(False)
    )
    return db.execute(stmt).scalar_one()
