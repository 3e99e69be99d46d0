"""Unit tests for OAuthService."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from authgate.domain.entities.oauth_client import OAuthClient
from authgate.domain.entities.oauth_token import AccessToken, AuthorizationCode, RefreshToken
from authgate.domain.entities.user import User
from authgate.domain.services import OAuthError, OAuthService
from authgate.infrastructure.auth.token_codec import pkce_challenge

REDIRECT_URI = "https://app.example.com/callback"
VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"


@pytest.fixture
def client():
    return OAuthClient(
        id="test-client",
        name="Test",
        client_secret_hash="hash",
        redirect_uris=[REDIRECT_URI],
        allowed_origin="https://app.example.com",
        scopes=["openid", "profile", "email"],
    )


@pytest.fixture
def mock_session():
    """Mock SQLAlchemy session."""
    return AsyncMock()


@pytest.fixture
def mock_registry():
    return AsyncMock()


@pytest.fixture
def mock_code_repo():
    return AsyncMock()


@pytest.fixture
def mock_token_repo():
    return AsyncMock()


@pytest.fixture
def mock_user_repo():
    return AsyncMock()


@pytest.fixture
def service(mock_session, mock_registry, mock_code_repo, mock_token_repo, mock_user_repo):
    return OAuthService(
        session=mock_session,
        client_registry=mock_registry,
        code_repo=mock_code_repo,
        token_repo=mock_token_repo,
        user_repo=mock_user_repo,
    )


def _stored_code(**overrides) -> AuthorizationCode:
    values = dict(
        code="the-code",
        client_id="test-client",
        user_id="user-1",
        redirect_uri=REDIRECT_URI,
        scopes=["openid", "email"],
        expires=datetime.now(timezone.utc) + timedelta(minutes=5),
    )
    values.update(overrides)
    return AuthorizationCode(**values)


@pytest.mark.asyncio
async def test_confidential_client_without_secret_is_rejected(service, mock_registry, client):
    mock_registry.validate_client.return_value = client

    with pytest.raises(OAuthError) as exc_info:
        await service.authenticate_client("test-client", None)

    assert exc_info.value.error == "invalid_client"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_create_authorization_code(service, mock_code_repo, mock_session, client):
    code = await service.create_authorization_code(
        client, "user-1", REDIRECT_URI, ["openid"], "challenge", "S256"
    )

    stored = mock_code_repo.create.call_args[0][0]
    assert stored.code == code
    assert stored.code_challenge == "challenge"
    assert stored.code_challenge_method == "S256"
    assert stored.expires - stored.created_at == timedelta(minutes=10)
    mock_session.commit.assert_called_once()


@pytest.mark.asyncio
async def test_challenge_without_method_defaults_to_plain(service, mock_code_repo, client):
    await service.create_authorization_code(client, "user-1", REDIRECT_URI, ["openid"], "abc")

    stored = mock_code_repo.create.call_args[0][0]
    assert stored.code_challenge_method == "plain"


@pytest.mark.asyncio
async def test_unsupported_challenge_method(service, mock_code_repo, client):
    with pytest.raises(OAuthError) as exc_info:
        await service.create_authorization_code(
            client, "user-1", REDIRECT_URI, ["openid"], "abc", "S512"
        )

    assert exc_info.value.error == "invalid_request"
    mock_code_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_exchange_code_issues_pair(
    service, mock_code_repo, mock_token_repo, mock_session, client
):
    mock_code_repo.get_for_redemption.return_value = _stored_code()
    mock_code_repo.consume.return_value = True

    pair = await service.exchange_code(client, "the-code", REDIRECT_URI)

    assert pair.access_token.scopes == ["openid", "email"]
    assert pair.refresh_token.access_token == pair.access_token.token
    mock_token_repo.create_pair.assert_called_once_with(pair)
    mock_session.commit.assert_called_once()


@pytest.mark.asyncio
async def test_exchange_unknown_code(service, mock_code_repo, mock_session, client):
    mock_code_repo.get_for_redemption.return_value = None

    with pytest.raises(OAuthError) as exc_info:
        await service.exchange_code(client, "nope", REDIRECT_URI)

    assert exc_info.value.error == "invalid_grant"
    mock_session.rollback.assert_called_once()


@pytest.mark.asyncio
async def test_exchange_lost_race(service, mock_code_repo, mock_token_repo, client):
    mock_code_repo.get_for_redemption.return_value = _stored_code()
    mock_code_repo.consume.return_value = False

    with pytest.raises(OAuthError):
        await service.exchange_code(client, "the-code", REDIRECT_URI)

    mock_token_repo.create_pair.assert_not_called()


@pytest.mark.asyncio
async def test_pkce_s256_verifier_accepted(service, mock_code_repo, client):
    mock_code_repo.get_for_redemption.return_value = _stored_code(
        code_challenge=pkce_challenge(VERIFIER, "S256"), code_challenge_method="S256"
    )
    mock_code_repo.consume.return_value = True

    pair = await service.exchange_code(client, "the-code", REDIRECT_URI, VERIFIER)
    assert pair is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("verifier", [None, "wrong-verifier"])
async def test_pkce_failure_keeps_code(service, mock_code_repo, mock_session, client, verifier):
    mock_code_repo.get_for_redemption.return_value = _stored_code(
        code_challenge=pkce_challenge(VERIFIER, "S256"), code_challenge_method="S256"
    )

    with pytest.raises(OAuthError) as exc_info:
        await service.exchange_code(client, "the-code", REDIRECT_URI, verifier)

    assert exc_info.value.error == "invalid_grant"
    mock_code_repo.consume.assert_not_called()
    mock_session.rollback.assert_called_once()


@pytest.mark.asyncio
async def test_refresh_rotates_with_inherited_scopes(
    service, mock_token_repo, mock_session, client
):
    now = datetime.now(timezone.utc)
    stored = RefreshToken(
        token="rt", access_token="at", client_id="test-client", user_id="user-1",
        expires=now + timedelta(days=1),
    )
    mock_token_repo.get_refresh_token.return_value = stored
    mock_token_repo.get_paired_access_token.return_value = AccessToken(
        token="at", client_id="test-client", user_id="user-1",
        scopes=["openid", "profile"], expires=now - timedelta(minutes=1),
    )
    mock_token_repo.revoke_pair.return_value = True

    pair = await service.refresh(client, "rt")

    assert pair.access_token.scopes == ["openid", "profile"]
    assert pair.refresh_token.token != "rt"
    mock_token_repo.revoke_pair.assert_called_once_with(stored)
    mock_session.commit.assert_called_once()


@pytest.mark.asyncio
async def test_refresh_orphaned_token(service, mock_token_repo, client):
    mock_token_repo.get_refresh_token.return_value = MagicMock()
    mock_token_repo.get_paired_access_token.return_value = None

    with pytest.raises(OAuthError) as exc_info:
        await service.refresh(client, "rt")

    assert exc_info.value.error == "invalid_grant"
    mock_token_repo.revoke_pair.assert_not_called()


@pytest.mark.asyncio
async def test_user_info_claims_follow_scopes(service, mock_user_repo):
    mock_user_repo.get_by_id.return_value = User(
        id="user-1",
        email="alice@example.com",
        name="Alice",
        email_verified=datetime.now(timezone.utc),
    )
    token = AccessToken(
        token="at", client_id="c", user_id="user-1", scopes=["openid"],
        expires=datetime.now(timezone.utc) + timedelta(hours=1),
    )

    assert await service.get_user_info(token) == {"sub": "user-1"}

    token.scopes = ["openid", "profile", "email"]
    assert await service.get_user_info(token) == {
        "sub": "user-1",
        "name": "Alice",
        "picture": None,
        "email": "alice@example.com",
        "email_verified": True,
    }


@pytest.mark.asyncio
async def test_user_info_for_deleted_user(service, mock_user_repo):
    mock_user_repo.get_by_id.return_value = None
    token = AccessToken(
        token="at", client_id="c", user_id="gone", scopes=["openid"],
        expires=datetime.now(timezone.utc) + timedelta(hours=1),
    )

    with pytest.raises(OAuthError) as exc_info:
        await service.get_user_info(token)

    assert exc_info.value.error == "server_error"
    assert exc_info.value.status_code == 500
