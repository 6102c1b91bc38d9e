"""
Signed session tokens for profile accounts.

A session names the account twice: ``sub`` is the account id used for
ownership checks and ``username`` is the handle it was issued for. Both are
required, and the username must satisfy the same grammar as profile
usernames, so a decoded session can be trusted without another lookup.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import JWTError, jwt

from config import settings
from schemas import USERNAME_PATTERN


SESSION_AUDIENCE = "profile-pages"


class InvalidSessionError(ValueError):
    """Token is unsigned, expired, or missing a required claim."""


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    username: str
    expires_at: int


def _session_ttl(hours: Optional[int]) -> timedelta:
    return timedelta(hours=max(int(hours or settings.JWT_EXPIRATION_HOURS or 24), 1))


def issue_session(user_id: str, username: str, ttl_hours: Optional[int] = None) -> Tuple[str, SessionClaims]:
    """Sign a session for an account; returns the token and what it asserts."""
    if not user_id:
        raise InvalidSessionError("Session requires an account id.")
    if not USERNAME_PATTERN.fullmatch(username or ""):
        raise InvalidSessionError("Session requires a valid username.")

    issued_at = datetime.now(timezone.utc)
    claims = SessionClaims(
        user_id=user_id,
        username=username,
        expires_at=int((issued_at + _session_ttl(ttl_hours)).timestamp()),
    )
    token = jwt.encode(
        {
            "sub": claims.user_id,
            "username": claims.username,
            "aud": SESSION_AUDIENCE,
            "iat": int(issued_at.timestamp()),
            "exp": claims.expires_at,
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return token, claims


def read_session(token: str) -> SessionClaims:
    """Verify a session token and return its claims."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=SESSION_AUDIENCE,
        )
    except JWTError as exc:
        raise InvalidSessionError("Invalid or expired session token.") from exc
    if payload.get("aud") != SESSION_AUDIENCE:
        raise InvalidSessionError("Invalid or expired session token.")

    user_id = payload.get("sub")
    username = payload.get("username")
    expires_at = payload.get("exp")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidSessionError("Session token missing account id.")
    if not isinstance(username, str) or not USERNAME_PATTERN.fullmatch(username):
        raise InvalidSessionError("Session token missing username.")
    if not isinstance(expires_at, int):
        raise InvalidSessionError("Session token missing expiry.")
    return SessionClaims(user_id=user_id, username=username, expires_at=expires_at)
