"""Credential log recording with best-effort webhook forwarding."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from config import settings, webhook_url
from schemas import CredentialLog, CredentialLogCreate
from services.storage import Storage

logger = logging.getLogger(__name__)


async def forward_to_webhook(
    log: CredentialLog,
    url: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """POST a credential log to the webhook. Failures are logged, never raised."""
    try:
        async with httpx.AsyncClient(
            timeout=float(settings.WEBHOOK_TIMEOUT_SECONDS),
            transport=transport,
        ) as client:
            response = await client.post(url, json=log.model_dump(by_alias=True))
            response.raise_for_status()
        return True
    except Exception as exc:
        logger.warning("Failed to send credential log %s to webhook: %s", log.id, exc)
        return False


async def record_login(
    storage: Storage,
    payload: CredentialLogCreate,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CredentialLog:
    """
    Append a credential log, then forward it if a webhook is configured.

    The profile does not need to exist. Forwarding happens after the log is
    stored and cannot undo it.
    """
    log = await storage.create_credential_log(payload)
    url = webhook_url()
    if url:
        await forward_to_webhook(log, url, transport=transport)
    return log
