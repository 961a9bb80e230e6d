"""Domain errors shared by the HTTP endpoints and the realtime server.

Each error carries a ``message`` that is safe to show to the client that
triggered it.
"""

from __future__ import annotations


class ServiceError(RuntimeError):
    """Base class for failures reported back to the originating client."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(ServiceError):
    """Missing or invalid token, unknown account, or a blocked account."""

    default_message = "Authentication error"


class ValidationFailure(ServiceError):
    """A required field is missing or the request targets the caller itself."""

    default_message = "Invalid request"


class NotFoundOrBlocked(ServiceError):
    """The counterpart does not exist or its account is blocked."""

    default_message = "Receiver not found or blocked"


class BlockedRelation(NotFoundOrBlocked):
    """One of the two users has blocked the other."""

    default_message = "Cannot send message to blocked user"


class NotFound(ServiceError):
    """The addressed record does not exist."""

    default_message = "Not found"


class PermissionDenied(ServiceError):
    """The caller does not own the record it tries to change."""

    default_message = "Not authorized"


class InsufficientBalance(ServiceError):
    """The sender cannot afford the gift."""

    default_message = "Insufficient diamonds"


class PersistenceFailure(ServiceError):
    """The data store rejected or failed a unit of work."""

    default_message = "Internal server error"
