"""
Authentication router: account signup, login, logout and session lookup.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from config import settings
from routers.auth_scope import get_auth_context
from routers.rate_limit import rate_limit
from schemas import LoginRequest, SessionResponse, SignupRequest, SuccessResponse, UserAccount, UserPublic
from services.passwords import hash_password, verify_password
from services.session_token import SessionClaims, issue_session
from services.storage import DuplicateUsernameError, Storage, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


def _start_session(response: Response, user: UserAccount) -> SessionResponse:
    token, session = issue_session(user.id, user.username)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=max(int(settings.JWT_EXPIRATION_HOURS), 1) * 3600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return SessionResponse(
        user=UserPublic(id=user.id, username=user.username),
        session_token=token,
        session_expires_at=session.expires_at,
    )


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def signup(
    request: SignupRequest,
    response: Response,
    _rate_limit: None = Depends(rate_limit("signup", limit=20, window_seconds=3600)),
    storage: Storage = Depends(get_storage),
):
    """Create an account and start a session."""
    try:
        user = await storage.create_user(request.username, hash_password(request.password))
    except DuplicateUsernameError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("Created account %s", user.username)
    return _start_session(response, user)


@router.post("/login", response_model=SessionResponse)
async def login(
    request: LoginRequest,
    response: Response,
    _rate_limit: None = Depends(rate_limit("login", limit=60, window_seconds=900)),
    storage: Storage = Depends(get_storage),
):
    user = await storage.get_user_by_username(request.username)
    if not user or not verify_password(request.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _start_session(response, user)


@router.post("/logout", response_model=SuccessResponse)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return SuccessResponse()


@router.get("/me", response_model=UserPublic)
async def get_current_user(
    auth: SessionClaims = Depends(get_auth_context),
    storage: Storage = Depends(get_storage),
):
    """Return the account behind the current session."""
    user = await storage.get_user(auth.user_id)
    if not user or user.username != auth.username:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return UserPublic(id=user.id, username=user.username)
