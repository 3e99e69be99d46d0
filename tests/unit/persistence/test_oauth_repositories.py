"""Unit tests for OAuth client, authorization code and token repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from authgate.core.config import OAuthClientConfig
from authgate.domain.entities.oauth_token import AuthorizationCode
from authgate.infrastructure.auth.token_codec import generate_secure_token, hash_code
from authgate.infrastructure.persistence.repositories import (
    AuthorizationCodeRepository,
    OAuthClientRepository,
    OAuthTokenRepository,
)

REDIRECT_URI = "https://app.example.com/callback"


def _auth_code(expires_in: timedelta = timedelta(minutes=10), **overrides) -> AuthorizationCode:
    values = dict(
        code=generate_secure_token(),
        client_id="test-client",
        user_id="user-1",
        redirect_uri=REDIRECT_URI,
        scopes=["openid", "email"],
        expires=datetime.now(timezone.utc) + expires_in,
    )
    values.update(overrides)
    return AuthorizationCode(**values)


@pytest.mark.asyncio
async def test_upsert_from_config_hashes_secret_and_updates(db_session):
    repo = OAuthClientRepository(db_session)
    config = OAuthClientConfig(
        id="seeded",
        name="Seeded",
        client_secret="plain-secret",
        redirect_uris=[REDIRECT_URI],
        allowed_origin="https://app.example.com",
    )

    created = await repo.upsert_from_config(config)
    assert created.client_secret_hash == hash_code("plain-secret")
    assert created.scopes == ["openid", "profile", "email"]

    config.name = "Renamed"
    config.redirect_uris = [REDIRECT_URI, "https://app.example.com/other"]
    updated = await repo.upsert_from_config(config)
    await db_session.commit()

    assert updated.name == "Renamed"
    assert len(updated.redirect_uris) == 2
    assert (await repo.get_active("seeded")).name == "Renamed"


@pytest.mark.asyncio
async def test_inactive_client_is_not_active(db_session):
    repo = OAuthClientRepository(db_session)
    await repo.upsert_from_config(
        OAuthClientConfig(
            id="disabled",
            name="Disabled",
            allowed_origin="https://disabled.example.com",
            is_active=False,
        )
    )
    await db_session.commit()

    assert await repo.get_active("disabled") is None
    assert await repo.get_by_id("disabled") is not None
    assert "https://disabled.example.com" not in await repo.list_active_origins()


@pytest.mark.asyncio
async def test_code_redemption_requires_matching_client_and_redirect(db_session):
    repo = AuthorizationCodeRepository(db_session)
    code = await repo.create(_auth_code())

    assert await repo.get_for_redemption(code.code, "other-client", REDIRECT_URI) is None
    assert await repo.get_for_redemption(code.code, "test-client", "https://evil.example") is None

    found = await repo.get_for_redemption(code.code, "test-client", REDIRECT_URI)
    assert found is not None
    assert found.scopes == ["openid", "email"]


@pytest.mark.asyncio
async def test_expired_code_is_not_redeemable(db_session):
    repo = AuthorizationCodeRepository(db_session)
    code = await repo.create(_auth_code(expires_in=timedelta(seconds=-1)))

    assert await repo.get_for_redemption(code.code, "test-client", REDIRECT_URI) is None
    assert await repo.delete_expired() == 1


@pytest.mark.asyncio
async def test_code_consumption_happens_once(db_session):
    repo = AuthorizationCodeRepository(db_session)
    code = await repo.create(_auth_code())

    assert await repo.consume(code.code, "test-client") is True
    assert await repo.consume(code.code, "test-client") is False
    assert await repo.get_for_redemption(code.code, "test-client", REDIRECT_URI) is None


@pytest.mark.asyncio
async def test_token_pair_lookup_and_revocation(db_session, onboarded_user, issue_tokens):
    pair = await issue_tokens(onboarded_user)
    repo = OAuthTokenRepository(db_session)

    access = await repo.get_access_token(pair.access_token.token)
    assert access.user_id == onboarded_user.id
    assert access.expires.tzinfo is not None

    refresh = await repo.get_refresh_token(pair.refresh_token.token, "test-client")
    assert refresh is not None
    assert await repo.get_refresh_token(pair.refresh_token.token, "other-client") is None

    paired = await repo.get_paired_access_token(refresh)
    assert paired.token == pair.access_token.token

    assert await repo.revoke_pair(refresh) is True
    assert await repo.revoke_pair(refresh) is False
    assert await repo.get_access_token(pair.access_token.token) is None


@pytest.mark.asyncio
async def test_expired_access_token_is_still_paired(db_session, onboarded_user, issue_tokens):
    pair = await issue_tokens(onboarded_user, access_expires_in=timedelta(seconds=-1))
    repo = OAuthTokenRepository(db_session)

    assert await repo.get_access_token(pair.access_token.token) is None
    refresh = await repo.get_refresh_token(pair.refresh_token.token, "test-client")
    assert await repo.get_paired_access_token(refresh) is not None
