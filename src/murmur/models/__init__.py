# src/murmur/models/__init__.py
"""SQLAlchemy models for the Murmur application."""

from .block import BlockedUser
from .call_history import CallHistory
from .gift import Gift
from .message import Message
from .notification import Notification
from .user import User

__all__ = [
    "BlockedUser",
    "CallHistory",
    "Gift",
    "Message",
    "Notification",
    "User",
]
