"""Integration tests for the profile endpoints."""

import pytest
from httpx import AsyncClient


@pytest.fixture
def signed_in(onboarded_user, sign_in):
    sign_in(onboarded_user)
    return onboarded_user


@pytest.mark.asyncio
async def test_requires_session(client: AsyncClient):
    assert (await client.get("/api/profile")).status_code == 401
    res = await client.post("/api/profile", json={"name": "X"})
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient, signed_in):
    res = await client.get("/api/profile")

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "user": {
            "id": signed_in.id,
            "email": "alice@example.com",
            "name": "Alice Smith",
            "organization": "Acme",
            "image": None,
        },
    }


@pytest.mark.asyncio
async def test_update_name_and_organization(client: AsyncClient, signed_in):
    res = await client.post(
        "/api/profile", json={"name": "  Alice Jones ", "organization": "Initech"}
    )

    assert res.status_code == 200
    user = res.json()["user"]
    assert user["name"] == "Alice Jones"
    assert user["organization"] == "Initech"

    session = (await client.get("/api/session")).json()
    assert session["user"]["name"] == "Alice Jones"


@pytest.mark.asyncio
async def test_set_and_clear_image(
    client: AsyncClient, confidential_client, signed_in, issue_tokens
):
    res = await client.post("/api/profile", json={"image": "https://cdn.example.com/alice.png"})
    assert res.status_code == 200
    assert res.json()["user"]["image"] == "https://cdn.example.com/alice.png"
    assert res.json()["user"]["name"] == "Alice Smith"

    pair = await issue_tokens(signed_in, scopes=["openid", "profile"])
    claims = await client.get(
        "/api/oauth/userinfo",
        headers={"Authorization": f"Bearer {pair.access_token.token}"},
    )
    assert claims.json()["picture"] == "https://cdn.example.com/alice.png"

    cleared = await client.post("/api/profile", json={"image": ""})
    assert cleared.json()["user"]["image"] is None

    await client.post("/api/profile", json={"image": "https://cdn.example.com/b.png"})
    nulled = await client.post("/api/profile", json={"image": None})
    assert nulled.json()["user"]["image"] is None


@pytest.mark.asyncio
async def test_update_requires_a_field(client: AsyncClient, signed_in):
    res = await client.post("/api/profile", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "At least one field must be provided"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"name": "   "}, "Name must be a non-empty string"),
        ({"name": None}, "Name must be a non-empty string"),
        ({"name": 42}, "Name must be a non-empty string"),
        ({"organization": ""}, "Organization must be a non-empty string"),
        ({"image": "ftp://files.example.com/a.png"}, "Image must be a valid URL or null"),
        ({"image": "not a url"}, "Image must be a valid URL or null"),
        ({"image": 7}, "Image must be a valid URL or null"),
    ],
)
async def test_update_rejects_invalid_fields(client: AsyncClient, signed_in, body, message):
    res = await client.post("/api/profile", json=body)

    assert res.status_code == 400
    assert res.json() == {"error": message}

    profile = (await client.get("/api/profile")).json()["user"]
    assert profile["name"] == "Alice Smith"
    assert profile["organization"] == "Acme"
