"""Integration tests for email-code sign-in, session and onboarding."""

import pytest
from httpx import AsyncClient

from authgate.core.config import get_settings


async def _send(client: AsyncClient, email: str) -> None:
    res = await client.post("/api/auth/email/send", json={"email": email})
    assert res.status_code == 200
    assert res.json() == {"success": True}


@pytest.mark.asyncio
async def test_first_sign_in_creates_user(client: AsyncClient, read_code):
    await _send(client, "Carol@Example.com")
    code = read_code("carol@example.com")

    res = await client.post(
        "/api/auth/email/signin", json={"email": "carol@example.com", "code": code}
    )

    assert res.status_code == 200
    user = res.json()["user"]
    assert user["email"] == "carol@example.com"
    assert user["emailVerified"] is not None
    assert user["onboardingCompleted"] is False
    assert get_settings().session_cookie_name in res.headers["set-cookie"]
    assert "httponly" in res.headers["set-cookie"].lower()

    session = await client.get("/api/session")
    assert session.json()["user"]["id"] == user["id"]


@pytest.mark.asyncio
async def test_sign_in_existing_user(client: AsyncClient, onboarded_user, read_code):
    await _send(client, "alice@example.com")
    code = read_code("alice@example.com")

    res = await client.post(
        "/api/auth/email/signin", json={"email": "alice@example.com", "code": code}
    )

    assert res.status_code == 200
    assert res.json()["user"]["id"] == onboarded_user.id
    assert res.json()["user"]["onboardingCompleted"] is True


@pytest.mark.asyncio
async def test_code_is_single_use(client: AsyncClient, read_code):
    await _send(client, "dave@example.com")
    code = read_code("dave@example.com")
    payload = {"email": "dave@example.com", "code": code}

    first = await client.post("/api/auth/email/signin", json=payload)
    assert first.status_code == 200

    replay = await client.post("/api/auth/email/signin", json=payload)
    assert replay.status_code == 400
    assert replay.json() == {"error": "Invalid verification code"}


@pytest.mark.asyncio
async def test_resend_invalidates_previous_code(client: AsyncClient, read_code):
    await _send(client, "erin@example.com")
    old_code = read_code("erin@example.com")
    await _send(client, "erin@example.com")
    new_code = read_code("erin@example.com")

    if old_code != new_code:
        stale = await client.post(
            "/api/auth/email/signin", json={"email": "erin@example.com", "code": old_code}
        )
        assert stale.status_code == 400

    res = await client.post(
        "/api/auth/email/signin", json={"email": "erin@example.com", "code": new_code}
    )
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_verify_email_does_not_consume(client: AsyncClient, read_code):
    await _send(client, "frank@example.com")
    code = read_code("frank@example.com")

    check = await client.post(
        "/api/verify-email", json={"email": "frank@example.com", "code": code}
    )
    assert check.status_code == 200
    assert check.json() == {"success": True, "canSignIn": True}

    res = await client.post(
        "/api/auth/email/signin", json={"email": "frank@example.com", "code": code}
    )
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_verify_email_errors(client: AsyncClient, read_code):
    missing = await client.post("/api/verify-email", json={"email": "frank@example.com"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Email and verification code are required"}

    await _send(client, "frank@example.com")
    code = read_code("frank@example.com")
    wrong = "000000" if code != "000000" else "111111"
    bad = await client.post("/api/verify-email", json={"email": "frank@example.com", "code": wrong})
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid verification code"}


@pytest.mark.asyncio
async def test_sign_in_without_code_sent(client: AsyncClient):
    res = await client.post(
        "/api/auth/email/signin", json={"email": "nobody@example.com", "code": "123456"}
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_session_without_cookie(client: AsyncClient):
    res = await client.get("/api/session")
    assert res.status_code == 200
    assert res.json() == {"user": None}


@pytest.mark.asyncio
async def test_session_with_garbage_cookie(client: AsyncClient):
    client.cookies.set(get_settings().session_cookie_name, "not-a-jwt")
    res = await client.get("/api/session")
    assert res.json() == {"user": None}


@pytest.mark.asyncio
async def test_onboarding(client: AsyncClient, new_user, sign_in):
    sign_in(new_user)

    res = await client.post(
        "/api/onboarding", json={"name": "Bob Jones", "organization": "Initech"}
    )
    assert res.status_code == 200
    assert res.json() == {"success": True}

    session = (await client.get("/api/session")).json()
    assert session["user"]["name"] == "Bob Jones"
    assert session["user"]["organization"] == "Initech"
    assert session["user"]["onboardingCompleted"] is True


@pytest.mark.asyncio
async def test_onboarding_requires_fields(client: AsyncClient, new_user, sign_in):
    sign_in(new_user)

    res = await client.post("/api/onboarding", json={"name": "  ", "organization": "Initech"})
    assert res.status_code == 400
    assert res.json() == {"error": "Name and organization are required"}


@pytest.mark.asyncio
async def test_onboarding_requires_session(client: AsyncClient):
    res = await client.post("/api/onboarding", json={"name": "X", "organization": "Y"})
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_sign_out_clears_cookie(client: AsyncClient, read_code):
    await _send(client, "gina@example.com")
    await client.post(
        "/api/auth/email/signin",
        json={"email": "gina@example.com", "code": read_code("gina@example.com")},
    )
    assert (await client.get("/api/session")).json()["user"] is not None

    res = await client.post("/api/auth/signout")

    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert get_settings().session_cookie_name in res.headers["set-cookie"]
    assert (await client.get("/api/session")).json() == {"user": None}
