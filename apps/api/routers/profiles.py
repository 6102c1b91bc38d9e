"""
Profile router: listing, lookup, creation, partial update and view counting.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from config import settings
from routers.auth_scope import ensure_profile_owner, get_optional_auth_context
from schemas import Profile, ProfileCreate, ProfileUpdate
from services.session_token import SessionClaims
from services.storage import DuplicateUsernameError, ImmutableFieldError, Storage, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_profile_or_404(storage: Storage, username: str) -> Profile:
    profile = await storage.get_profile_by_username(username)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("", response_model=List[Profile])
async def list_profiles(storage: Storage = Depends(get_storage)):
    """Return every profile."""
    return await storage.get_all_profiles()


@router.get("/{username}", response_model=Profile)
async def get_profile(username: str, storage: Storage = Depends(get_storage)):
    return await _get_profile_or_404(storage, username)


@router.post("", response_model=Profile, status_code=201)
async def create_profile(
    request: ProfileCreate,
    auth: Optional[SessionClaims] = Depends(get_optional_auth_context),
    storage: Storage = Depends(get_storage),
):
    """Create a profile. The username is permanent once taken."""
    user_id = None
    if settings.PROFILE_AUTH_REQUIRED:
        if auth is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        user_id = auth.user_id

    try:
        profile = await storage.create_profile(request, user_id=user_id)
    except DuplicateUsernameError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("Created profile %s (%s)", profile.username, profile.id)
    return profile


@router.put("/{username}", response_model=Profile)
async def update_profile(
    username: str,
    request: ProfileUpdate,
    auth: Optional[SessionClaims] = Depends(get_optional_auth_context),
    storage: Storage = Depends(get_storage),
):
    """
    Apply a partial update. Fields missing from the body keep their
    current values; sending a different ``username`` is rejected.
    """
    if request.username and request.username != username:
        raise HTTPException(status_code=400, detail="Cannot change username")

    if settings.PROFILE_AUTH_REQUIRED:
        current = await _get_profile_or_404(storage, username)
        ensure_profile_owner(auth, current)

    try:
        profile = await storage.update_profile(username, request)
    except ImmutableFieldError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.post("/{username}/view", response_model=Profile)
async def increment_view(username: str, storage: Storage = Depends(get_storage)):
    """Count a page view and return the updated profile."""
    profile = await storage.increment_view_count(username)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile
