"""Credential log router."""

from fastapi import APIRouter, Depends

from routers.rate_limit import rate_limit
from schemas import CredentialLogCreate, SuccessResponse
from services.credential_log import record_login
from services.storage import Storage, get_storage

router = APIRouter()


@router.post("/log", response_model=SuccessResponse, status_code=201)
async def log_credentials(
    request: CredentialLogCreate,
    _rate_limit: None = Depends(rate_limit("credential_log", limit=300, window_seconds=3600)),
    storage: Storage = Depends(get_storage),
):
    """Record a login attempt made from a profile page's login modal."""
    await record_login(storage, request)
    return SuccessResponse()
