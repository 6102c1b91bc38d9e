from unittest.mock import patch

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from config import settings
from routers import rate_limit


def _limited_app() -> FastAPI:
    limited = FastAPI()

    @limited.post("/limited")
    async def limited_endpoint(_rate_limit: None = Depends(rate_limit.rate_limit("test", limit=2, window_seconds=60))):
        return {"ok": True}

    return limited


@pytest.mark.asyncio
async def test_local_fallback_enforces_quota_when_redis_is_down():
    limited = _limited_app()
    with patch.object(settings, "REDIS_URL", "redis://127.0.0.1:1"):
        async with AsyncClient(transport=ASGITransport(app=limited), base_url="http://test") as client:
            first = await client.post("/limited")
            second = await client.post("/limited")
            third = await client.post("/limited")

    assert first.status_code == 200
    assert second.status_code == 200
    assert third.status_code == 429
    assert third.headers["retry-after"] == "60"


@pytest.mark.asyncio
async def test_quota_is_tracked_per_client():
    limited = _limited_app()
    first_peer = ASGITransport(app=limited, client=("10.0.0.1", 5000))
    second_peer = ASGITransport(app=limited, client=("10.0.0.2", 5000))
    with patch.object(settings, "REDIS_URL", "redis://127.0.0.1:1"):
        async with AsyncClient(transport=first_peer, base_url="http://test") as client:
            for _ in range(2):
                await client.post("/limited")
            blocked = await client.post("/limited")
        async with AsyncClient(transport=second_peer, base_url="http://test") as client:
            other = await client.post("/limited")

    assert blocked.status_code == 429
    assert other.status_code == 200


@pytest.mark.asyncio
async def test_rotating_forwarded_for_does_not_reset_quota():
    limited = _limited_app()
    transport = ASGITransport(app=limited, client=("10.0.0.9", 5000))
    with patch.object(settings, "REDIS_URL", "redis://127.0.0.1:1"):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = []
            for n in range(5):
                resp = await client.post("/limited", headers={"X-Forwarded-For": f"203.0.113.{n}"})
                statuses.append(resp.status_code)

    assert statuses == [200, 200, 429, 429, 429]
    assert list(rate_limit._local_counters) == ["profiles:rate:test:10.0.0.9"]
