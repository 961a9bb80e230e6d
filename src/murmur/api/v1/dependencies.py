"""Request-scoped dependencies: auth, database session, storage and the realtime server."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, WebSocket, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from murmur.db.session import get_db
from murmur.models import User
from murmur.realtime import RealtimeServer
from murmur.services.auth import AccountBlocked, authenticate_token
from murmur.services.errors import (
    AuthenticationFailure,
    BlockedRelation,
    InsufficientBalance,
    NotFound,
    NotFoundOrBlocked,
    PermissionDenied,
    ServiceError,
    ValidationFailure,
)
from murmur.services.storage import StorageClient, get_storage_client

# Missing credentials are reported by authenticate_token, not by FastAPI.
bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Resolve the bearer token to an active user.

    Args:
        credentials: HTTP Bearer credentials, or None when the header is absent
        db: Database session

    Returns:
        The authenticated, non-blocked user

    Raises:
        HTTPException: 401 if the token is missing or invalid, 403 if the account is blocked
    """
    token = credentials.credentials if credentials else None
    try:
        return authenticate_token(db, token)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


def get_storage_client_dep() -> StorageClient:
    """Return the shared object-storage client."""
    return get_storage_client()


def get_realtime_server(request: Request) -> RealtimeServer:
    """Return the realtime server owned by the running application.

    Args:
        request: Incoming HTTP request

    Returns:
        The server created at startup and kept on ``app.state``
    """
    return request.app.state.realtime_server


def get_realtime_server_ws(websocket: WebSocket) -> RealtimeServer:
    """Websocket flavour of ``get_realtime_server``."""
    return websocket.app.state.realtime_server


CurrentUserDep = Annotated[User, Depends(get_current_user)]
StorageDep = Annotated[StorageClient, Depends(get_storage_client_dep)]
RealtimeServerDep = Annotated[RealtimeServer, Depends(get_realtime_server)]

_STATUS_BY_ERROR: list[tuple[type[ServiceError], int]] = [
    (AccountBlocked, status.HTTP_403_FORBIDDEN),
    (AuthenticationFailure, status.HTTP_401_UNAUTHORIZED),
    (BlockedRelation, status.HTTP_403_FORBIDDEN),
    (NotFoundOrBlocked, status.HTTP_404_NOT_FOUND),
    (ValidationFailure, status.HTTP_400_BAD_REQUEST),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InsufficientBalance, status.HTTP_402_PAYMENT_REQUIRED),
]


def to_http_exception(exc: ServiceError) -> HTTPException:
    """Map a domain error onto the HTTP status the endpoints report.

    Args:
        exc: Error raised by a service function

    Returns:
        HTTPException carrying the error's client-safe message; 500 when unmapped
    """
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
