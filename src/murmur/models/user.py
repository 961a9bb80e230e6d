# src/murmur/models/user.py
"""SQLAlchemy model for user accounts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from murmur.db.session import Base
from murmur.db.time import utcnow


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """Account identity plus the presence flag and virtual-currency balances."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_user_id)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_active: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Spendable balance used to buy gifts.
    diamonds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Earned balance credited by received gifts.
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def display_name(self) -> str:
        """Return the name shown to other users."""
        return self.full_name or self.username

    def public_profile(self) -> dict[str, Any]:
        """Return the profile fields attached to realtime events."""
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "profileImage": self.profile_image,
        }
