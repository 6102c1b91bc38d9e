import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from main import app


@pytest_asyncio.fixture
async def profile_client(memory_storage):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, memory_storage


@pytest.mark.asyncio
async def test_create_view_and_fetch_profile(profile_client):
    client, _storage = profile_client

    create_resp = await client.post("/api/profiles", json={"username": "nova", "bio": "hi"})
    assert create_resp.status_code == 201
    created = create_resp.json()
    assert created["username"] == "nova"
    assert created["bio"] == "hi"
    assert created["viewCount"] == 0
    assert created["backgroundVideoMuted"] == 1
    assert created["displayName"] is None
    assert created["id"]

    view_resp = await client.post("/api/profiles/nova/view")
    assert view_resp.status_code == 200
    assert view_resp.json()["viewCount"] == 1

    get_resp = await client.get("/api/profiles/nova")
    assert get_resp.status_code == 200
    assert get_resp.json()["viewCount"] == 1
    assert get_resp.json()["id"] == created["id"]


@pytest.mark.asyncio
async def test_duplicate_username_is_rejected(profile_client):
    client, storage = profile_client

    first = await client.post("/api/profiles", json={"username": "alice"})
    assert first.status_code == 201
    second = await client.post("/api/profiles", json={"username": "alice", "bio": "again"})
    assert second.status_code == 400
    assert second.json()["detail"] == "Username already exists"

    matching = [p for p in await storage.get_all_profiles() if p.username == "alice"]
    assert len(matching) == 1
    assert matching[0].bio is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"username": "ab"},
        {"username": "bad name"},
        {"username": "bad-name"},
        {"username": "nova\n"},
        {"username": "ok_name", "bio": "x" * 501},
        {"username": "ok_name", "backgroundVideoMuted": 2},
        {"bio": "missing username"},
    ],
)
async def test_create_rejects_invalid_payload_with_400(profile_client, payload):
    client, storage = profile_client

    resp = await client.post("/api/profiles", json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["detail"]
    assert isinstance(body["errors"], list)
    assert await storage.get_all_profiles() == []


@pytest.mark.asyncio
async def test_create_ignores_client_view_count(profile_client):
    client, _storage = profile_client

    resp = await client.post("/api/profiles", json={"username": "sneaky", "viewCount": 999, "id": "mine"})
    assert resp.status_code == 201
    assert resp.json()["viewCount"] == 0
    assert resp.json()["id"] != "mine"


@pytest.mark.asyncio
async def test_bio_at_limit_is_accepted(profile_client):
    client, _storage = profile_client

    resp = await client.post("/api/profiles", json={"username": "writer", "bio": "y" * 500})
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_partial_update_keeps_omitted_fields(profile_client):
    client, _storage = profile_client

    await client.post(
        "/api/profiles",
        json={"username": "kai", "displayName": "Kai", "github": "https://github.com/kai"},
    )

    resp = await client.put("/api/profiles/kai", json={"bio": "x"})
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["bio"] == "x"
    assert updated["displayName"] == "Kai"
    assert updated["github"] == "https://github.com/kai"


@pytest.mark.asyncio
async def test_update_with_explicit_null_clears_field(profile_client):
    client, _storage = profile_client

    await client.post(
        "/api/profiles",
        json={"username": "mira", "displayName": "Mira", "backgroundVideoMuted": 0},
    )

    resp = await client.put("/api/profiles/mira", json={"displayName": None, "backgroundVideoMuted": None})
    assert resp.status_code == 200
    assert resp.json()["displayName"] is None
    assert resp.json()["backgroundVideoMuted"] == 1


@pytest.mark.asyncio
async def test_update_cannot_change_username(profile_client):
    client, storage = profile_client

    await client.post("/api/profiles", json={"username": "fixed"})

    resp = await client.put("/api/profiles/fixed", json={"username": "other", "bio": "renamed"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot change username"
    assert await storage.get_profile_by_username("other") is None
    stored = await storage.get_profile_by_username("fixed")
    assert stored is not None
    assert stored.bio is None


@pytest.mark.asyncio
async def test_update_with_same_username_is_allowed(profile_client):
    client, _storage = profile_client

    await client.post("/api/profiles", json={"username": "same"})
    resp = await client.put("/api/profiles/same", json={"username": "same", "twitch": "same_tv"})
    assert resp.status_code == 200
    assert resp.json()["twitch"] == "same_tv"


@pytest.mark.asyncio
async def test_update_missing_profile_returns_404(profile_client):
    client, _storage = profile_client

    resp = await client.put("/api/profiles/ghost", json={"bio": "boo"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_rejects_overlong_bio(profile_client):
    client, _storage = profile_client

    await client.post("/api/profiles", json={"username": "longbio"})
    resp = await client.put("/api/profiles/longbio", json={"bio": "z" * 501})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_view_on_missing_profile_is_404_and_creates_nothing(profile_client):
    client, storage = profile_client

    resp = await client.post("/api/profiles/nobody/view")
    assert resp.status_code == 404
    assert await storage.get_all_profiles() == []


@pytest.mark.asyncio
async def test_list_profiles_and_missing_lookup(profile_client):
    client, _storage = profile_client

    await client.post("/api/profiles", json={"username": "one"})
    await client.post("/api/profiles", json={"username": "two"})

    list_resp = await client.get("/api/profiles")
    assert list_resp.status_code == 200
    assert sorted(p["username"] for p in list_resp.json()) == ["one", "two"]

    missing = await client.get("/api/profiles/three")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Profile not found"
