"""CRUD-style helpers for user notifications."""
from __future__ import annotations

import math
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from murmur.models import Notification
from murmur.services.errors import NotFound, PermissionDenied, ValidationFailure

__all__ = [
    "serialize_notification",
    "create_notification",
    "list_notifications",
    "count_unread",
    "mark_read",
    "mark_all_read",
    "delete_notification",
]


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Serialize a Notification for HTTP responses and ``notification`` events."""
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "title": notification.title,
        "message": notification.body,
        "type": notification.type,
        "data": notification.data,
        "isRead": notification.is_read,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }


def create_notification(
    db: Session,
    user_id: str,
    *,
    title: str,
    body: str,
    type: str,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Persist a notification for ``user_id`` and return its payload."""
    notification = Notification(user_id=user_id, title=title, body=body, type=type, data=data)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return serialize_notification(notification)


def list_notifications(
    db: Session,
    user_id: str,
    *,
    page: int = 1,
    limit: int = 20,
    type: str | None = None,
) -> dict[str, Any]:
    """Return one page of a user's notifications, newest first."""
    conditions = [Notification.user_id == user_id]
    if type:
        conditions.append(Notification.type == type)

    rows = (
        db.execute(
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    total = db.execute(select(func.count(Notification.id)).where(*conditions)).scalar_one()
    return {
        "notifications": [serialize_notification(row) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


def count_unread(db: Session, user_id: str) -> int:
    """Return the number of unread notifications owned by ``user_id``."""
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id, Notification.is_read.is_(False)
    )
    return db.execute(stmt).scalar_one()


def _owned(db: Session, notification_id: int, user_id: str, action: str) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFound("Notification not found")
    if notification.user_id != user_id:
        raise PermissionDenied(f"Not authorized to {action} this notification")
    return notification


def mark_read(db: Session, notification_id: int, user_id: str) -> None:
    """Mark one notification read on behalf of its owner."""
    notification = _owned(db, notification_id, user_id, "mark as read")
    if notification.is_read:
        raise ValidationFailure("Notification already marked as read")
    notification.is_read = True
    db.commit()


def mark_all_read(db: Session, user_id: str) -> int:
    """Mark every unread notification of ``user_id`` as read."""
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0


def delete_notification(db: Session, notification_id: int, user_id: str) -> None:
    """Delete a notification owned by ``user_id``."""
    notification = _owned(db, notification_id, user_id, "delete")
    db.delete(notification)
    db.commit()
