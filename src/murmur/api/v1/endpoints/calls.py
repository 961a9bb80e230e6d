"""Call history endpoints for the Murmur API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from murmur.api.v1.dependencies import CurrentUserDep, SessionDep, to_http_exception
from murmur.schemas.call import CallHistoryCreate
from murmur.services import call_service
from murmur.services.errors import ServiceError

router = APIRouter(prefix="/calls", tags=["calls"])


@router.post("/history", status_code=status.HTTP_201_CREATED)
async def record_call(
    call_data: CallHistoryCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Record a call placed by the current user after it concluded."""
    try:
        return call_service.record_call_history(
            db,
            current_user.id,
            call_data.receiver_id,
            type=call_data.type,
            status=call_data.status,
            duration=call_data.duration,
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/history")
async def get_call_history(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict[str, Any]:
    """List calls placed or received by the current user."""
    return call_service.get_call_history(db, current_user.id, page=page, limit=limit)
