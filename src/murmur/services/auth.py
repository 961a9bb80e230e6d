"""Token authentication shared by HTTP requests and websocket handshakes."""

from __future__ import annotations

from sqlalchemy.orm import Session

from murmur.core.security import InvalidTokenError, decode_access_token
from murmur.models import User
from murmur.services.errors import AuthenticationFailure


class AccountBlocked(AuthenticationFailure):
    """The token is valid but the account has been blocked."""

    default_message = "Account is blocked"


def authenticate_token(db: Session, token: str | None) -> User:
    """Resolve a bearer token to an active user.

    Raises:
        AuthenticationFailure: If the token is missing or invalid, or the user is unknown.
        AccountBlocked: If the user exists but is blocked.
    """
    if not token:
        raise AuthenticationFailure("No token provided")

    try:
        user_id = decode_access_token(token)
    except InvalidTokenError as err:
        raise AuthenticationFailure("Invalid token") from err

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationFailure("User not found")
    if user.is_blocked:
        raise AccountBlocked()
    return user
