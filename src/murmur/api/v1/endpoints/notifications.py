"""Notification inbox endpoints for the Murmur API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from murmur.api.v1.dependencies import CurrentUserDep, SessionDep, to_http_exception
from murmur.services import notification_service
from murmur.services.errors import ServiceError

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/")
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: str | None = Query(None),
) -> dict[str, Any]:
    """Get the current user's notifications, newest first.

    Args:
        current_user: Authenticated user
        db: Database session
        page: 1-based page number
        limit: Notifications per page
        type: Only return notifications of this type

    Returns:
        Notifications plus pagination totals
    """
    return notification_service.list_notifications(
        db, current_user.id, page=page, limit=limit, type=type
    )


@router.get("/unread-count")
async def get_unread_count(current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    return {"unreadCount": notification_service.count_unread(db, current_user.id)}


@router.put("/read-all")
async def mark_all_read(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    updated = notification_service.mark_all_read(db, current_user.id)
    return {"status": "marked_all_as_read", "updated": updated}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    try:
        notification_service.mark_read(db, notification_id, current_user.id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return {"status": "marked_as_read"}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    try:
        notification_service.delete_notification(db, notification_id, current_user.id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return {"status": "deleted"}
