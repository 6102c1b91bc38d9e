"""
Upload router for base64 asset ingestion and deletion.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from routers.rate_limit import rate_limit
from schemas import SuccessResponse, UploadRequest, UploadResponse
from services.uploads import (
    InvalidFilenameError,
    MalformedPayloadError,
    UploadNotFoundError,
    UploadTooLargeError,
    remove_upload,
    save_upload,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=UploadResponse)
async def upload_file(
    request: UploadRequest,
    _rate_limit: None = Depends(rate_limit("upload", limit=120, window_seconds=3600)),
):
    """Store a ``data:<mime>;base64,...`` payload and return its public path."""
    try:
        stored = save_upload(request.file_data, request.file_type)
    except MalformedPayloadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UploadTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except OSError as exc:
        logger.exception("Upload write failed: %s", exc)
        raise HTTPException(status_code=500, detail="Could not store uploaded file") from exc

    return UploadResponse(path=stored.path, filename=stored.filename, mime_type=stored.mime_type)


@router.delete("/{filename}", response_model=SuccessResponse)
async def delete_file(filename: str):
    """Delete a previously uploaded file by its stored filename."""
    try:
        remove_upload(filename)
    except InvalidFilenameError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UploadNotFoundError as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
    except OSError as exc:
        logger.exception("Upload delete failed for %s: %s", filename, exc)
        raise HTTPException(status_code=500, detail="Could not delete file") from exc

    return SuccessResponse()
