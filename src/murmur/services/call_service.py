"""Call history record keeping, independent of live call signaling."""

from __future__ import annotations

import math
from datetime import timedelta
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from murmur.db.time import utcnow
from murmur.models import CallHistory, User
from murmur.services.errors import NotFound, ValidationFailure

CALL_TYPES = ("voice", "video")
CALL_STATUSES = ("completed", "missed", "rejected", "cancelled")


def serialize_call(call: CallHistory) -> dict[str, Any]:
    return {
        "id": call.id,
        "callerId": call.caller_id,
        "receiverId": call.receiver_id,
        "type": call.type,
        "status": call.status,
        "duration": call.duration,
        "startedAt": call.started_at.isoformat() if call.started_at else None,
        "endedAt": call.ended_at.isoformat() if call.ended_at else None,
        "createdAt": call.created_at.isoformat() if call.created_at else None,
    }


def record_call_history(
    db: Session,
    caller_id: str,
    receiver_id: str,
    *,
    type: str,
    status: str,
    duration: int | None = None,
) -> dict[str, Any]:
    """Persist a concluded call.

    Completed calls get ``started_at``/``ended_at`` derived from ``duration``.
    """
    if type not in CALL_TYPES:
        raise ValidationFailure(f"Unsupported call type: {type}")
    if status not in CALL_STATUSES:
        raise ValidationFailure(f"Unsupported call status: {status}")
    if caller_id == receiver_id:
        raise ValidationFailure("Cannot call yourself")
    if db.get(User, receiver_id) is None:
        raise NotFound("User not found")

    started_at = ended_at = None
    if status == "completed":
        ended_at = utcnow()
        started_at = ended_at - timedelta(seconds=duration or 0)

    call = CallHistory(
        caller_id=caller_id,
        receiver_id=receiver_id,
        type=type,
        status=status,
        duration=duration,
        started_at=started_at,
        ended_at=ended_at,
    )
    db.add(call)
    db.commit()
    db.refresh(call)
    return serialize_call(call)


def get_call_history(
    db: Session, user_id: str, *, page: int = 1, limit: int = 20
) -> dict[str, Any]:
    """Return calls placed or received by ``user_id``, newest first."""
    involved = or_(CallHistory.caller_id == user_id, CallHistory.receiver_id == user_id)
    calls = (
        db.execute(
            select(CallHistory)
            .where(involved)
            .order_by(CallHistory.created_at.desc(), CallHistory.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    total = db.execute(select(func.count(CallHistory.id)).where(involved)).scalar_one()
    return {
        "calls": [serialize_call(call) for call in calls],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }
