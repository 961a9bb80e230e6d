"""Business logic services for the Murmur application."""

from .errors import (
    AuthenticationFailure,
    BlockedRelation,
    InsufficientBalance,
    NotFound,
    NotFoundOrBlocked,
    PermissionDenied,
    PersistenceFailure,
    ServiceError,
    ValidationFailure,
)

__all__ = [
    "AuthenticationFailure",
    "BlockedRelation",
    "InsufficientBalance",
    "NotFound",
    "NotFoundOrBlocked",
    "PermissionDenied",
    "PersistenceFailure",
    "ServiceError",
    "ValidationFailure",
]
