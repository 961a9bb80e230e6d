# src/murmur/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    calls_router,
    messages_router,
    notifications_router,
    realtime_router,
)

__all__ = [
    "calls_router",
    "messages_router",
    "notifications_router",
    "realtime_router",
]
