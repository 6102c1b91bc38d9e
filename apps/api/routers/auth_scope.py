"""Session dependencies for profile ownership checks."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from schemas import Profile
from services.session_token import InvalidSessionError, SessionClaims, read_session


auth_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _resolve_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[SessionClaims]:
    """Read the session from Bearer header or cookie; None when absent."""
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    return read_session(token)


async def get_optional_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> Optional[SessionClaims]:
    """Session if one is present and valid, otherwise None."""
    try:
        return _resolve_session(request, credentials)
    except InvalidSessionError:
        return None


async def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> SessionClaims:
    """Require an active session."""
    try:
        auth = _resolve_session(request, credentials)
    except InvalidSessionError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth


def ensure_profile_owner(auth: Optional[SessionClaims], profile: Profile) -> None:
    """Reject writes to a profile owned by another account."""
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if profile.user_id != auth.user_id:
        logger.warning("Account %s denied write to profile %s", auth.username, profile.username)
        raise HTTPException(status_code=403, detail="You do not own this profile")
