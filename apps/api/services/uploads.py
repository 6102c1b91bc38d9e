"""
Base64 asset ingestion and lifecycle.

Uploaded files are stored flat in ``settings.UPLOAD_DIR`` as
``<assetKind>_<32 hex chars>.<ext>``. That filename is returned to clients
and is the only handle accepted for deletion.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import secrets
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Set

from config import settings
from schemas import ASSET_FIELDS, Profile

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"data:([A-Za-z0-9.+/-]+);base64,(.+)", re.DOTALL)
ASSET_KIND_PATTERN = re.compile(r"[A-Za-z0-9-]{1,32}")
STORED_FILENAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9]+")
RANDOM_TOKEN_BYTES = 16

EXTENSION_BY_SUBTYPE = {
    "svg+xml": "svg",
    "quicktime": "mov",
    "x-m4a": "m4a",
    "x-wav": "wav",
    "x-icon": "ico",
}


class MalformedPayloadError(ValueError):
    """Upload body is not a usable ``data:<mime>;base64,<payload>`` string."""


class UploadTooLargeError(ValueError):
    """Decoded upload exceeds ``MAX_UPLOAD_BYTES``."""


class InvalidFilenameError(ValueError):
    """Delete target is not a plain stored-upload filename."""


class UploadNotFoundError(FileNotFoundError):
    """No stored upload with that filename."""


@dataclass
class StoredUpload:
    path: str
    filename: str
    mime_type: str


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def public_path(filename: str) -> str:
    prefix = (settings.UPLOAD_PUBLIC_PREFIX or "/uploads").rstrip("/")
    return f"{prefix}/{filename}"


def extension_for_mime(mime_type: str) -> str:
    """Derive a bare alphanumeric file extension from a MIME type."""
    subtype = mime_type.split("/", 1)[1] if "/" in mime_type else ""
    subtype = subtype.split(";", 1)[0].strip().lower()
    ext = EXTENSION_BY_SUBTYPE.get(subtype, subtype)
    ext = re.sub(r"[^a-z0-9]", "", ext)
    if not ext:
        raise MalformedPayloadError("Invalid file data format")
    return ext


def decode_data_uri(file_data: str) -> tuple[str, bytes]:
    """Split a data URI into its MIME type and decoded bytes."""
    match = DATA_URI_PATTERN.fullmatch((file_data or "").strip())
    if not match:
        raise MalformedPayloadError("Invalid file data format")
    mime_type, payload = match.group(1), match.group(2)
    if "/" not in mime_type:
        raise MalformedPayloadError("Invalid file data format")
    try:
        content = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayloadError("Invalid base64 payload") from exc
    if not content:
        raise MalformedPayloadError("Empty file payload")
    return mime_type, content


def _write_atomic(destination: Path, content: bytes) -> None:
    """Write to a temp file beside ``destination`` and rename it into place."""
    fd, tmp_path = tempfile.mkstemp(dir=str(destination.parent), prefix=".upload-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as out:
            out.write(content)
        os.replace(tmp_path, destination)
    except Exception:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            logger.warning("Could not cleanup temporary upload %s", tmp_path)
        raise


def save_upload(file_data: str, asset_kind: str) -> StoredUpload:
    """
    Decode a data URI and persist it under the uploads directory.

    Either the file is fully written and its paths returned, or nothing is
    left on disk.
    """
    kind = (asset_kind or "").strip()
    if not ASSET_KIND_PATTERN.fullmatch(kind):
        raise MalformedPayloadError("Invalid file type")

    mime_type, content = decode_data_uri(file_data)
    if len(content) > int(settings.MAX_UPLOAD_BYTES):
        raise UploadTooLargeError(
            f"File exceeds maximum upload size of {int(settings.MAX_UPLOAD_BYTES)} bytes"
        )

    ext = extension_for_mime(mime_type)
    filename = f"{kind}_{secrets.token_hex(RANDOM_TOKEN_BYTES)}.{ext}"
    root = upload_root()
    root.mkdir(parents=True, exist_ok=True)
    _write_atomic(root / filename, content)

    logger.info("Stored upload %s (%s, %d bytes)", filename, mime_type, len(content))
    return StoredUpload(path=public_path(filename), filename=filename, mime_type=mime_type)


def validate_filename(filename: str) -> str:
    if not filename or ".." in filename or "/" in filename or "\\" in filename:
        raise InvalidFilenameError("Invalid filename")
    if not STORED_FILENAME_PATTERN.fullmatch(filename):
        raise InvalidFilenameError("Invalid filename format")
    return filename


def remove_upload(filename: str) -> None:
    """Delete a stored upload by the filename returned from ``save_upload``."""
    validate_filename(filename)
    root = upload_root().resolve()
    target = (root / filename).resolve()
    if target.parent != root:
        raise InvalidFilenameError("Invalid filename")
    if not target.is_file():
        raise UploadNotFoundError("File not found")
    try:
        target.unlink()
    except FileNotFoundError as exc:
        raise UploadNotFoundError("File not found") from exc
    logger.info("Removed upload %s", filename)


def referenced_filenames(profiles: Iterable[Profile]) -> Set[str]:
    """Upload filenames referenced by any profile asset field."""
    prefix = public_path("")
    names: Set[str] = set()
    for profile in profiles:
        for field in ASSET_FIELDS:
            value: Optional[str] = getattr(profile, field)
            if value and value.startswith(prefix):
                names.add(value[len(prefix):])
    return names


def sweep_orphaned_uploads(profiles: Iterable[Profile], retention_hours: Optional[int] = None) -> int:
    """
    Delete unreferenced upload files older than the retention window.

    Files still referenced by a profile are never touched.
    """
    root = upload_root()
    if not root.exists():
        return 0

    hours = max(int(retention_hours if retention_hours is not None else settings.UPLOAD_ORPHAN_RETENTION_HOURS), 0)
    cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
    referenced = referenced_filenames(profiles)
    removed = 0
    for path in root.iterdir():
        if not path.is_file() or path.name in referenced:
            continue
        if not STORED_FILENAME_PATTERN.fullmatch(path.name):
            continue
        try:
            mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            if mtime < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        except OSError as exc:
            logger.warning("Could not cleanup orphaned upload %s: %s", path, exc)
    if removed:
        logger.info("Removed %d orphaned uploads", removed)
    return removed
