# src/murmur/schemas/__init__.py
"""Pydantic schemas for request and response validation."""

from .call import CallHistoryCreate
from .message import MessageCreate

__all__ = [
    "CallHistoryCreate",
    "MessageCreate",
]
