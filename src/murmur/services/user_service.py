"""Presence updates for user accounts."""
from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.orm import Session

from murmur.db.time import utcnow
from murmur.models import User

__all__ = ["set_presence"]


def set_presence(db: Session, user_id: str, online: bool) -> None:
    """Persist the online flag and bump ``last_active``."""
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(is_online=online, last_active=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
