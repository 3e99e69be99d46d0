"""Unit tests for ClientRegistry."""

import pytest

from authgate.domain.services import ClientRegistry
from authgate.infrastructure.auth.token_codec import hash_code
from authgate.infrastructure.persistence.repositories import OAuthClientRepository


@pytest.fixture
def registry(db_session):
    return ClientRegistry(db_session, OAuthClientRepository(db_session))


@pytest.mark.asyncio
async def test_validate_client_without_secret(registry, confidential_client):
    client = await registry.validate_client("test-client")
    assert client is not None
    assert client.is_confidential


@pytest.mark.asyncio
async def test_validate_client_with_secret(registry, confidential_client):
    assert await registry.validate_client("test-client", "test-client-secret") is not None
    assert await registry.validate_client("test-client", "wrong-secret") is None


@pytest.mark.asyncio
async def test_unknown_client(registry):
    assert await registry.validate_client("missing") is None
    assert await registry.validate_client("") is None


@pytest.mark.asyncio
async def test_public_client_presenting_secret_is_rejected(registry, public_client):
    assert await registry.validate_client("public-client") is not None
    assert await registry.validate_client("public-client", "anything") is None


@pytest.mark.asyncio
async def test_redirect_uri_must_match_exactly(registry, confidential_client):
    assert registry.validate_redirect_uri(
        confidential_client, "https://app.example.com/callback"
    )
    assert not registry.validate_redirect_uri(
        confidential_client, "https://app.example.com/callback/"
    )
    assert not registry.validate_redirect_uri(
        confidential_client, "https://app.example.com/callback?x=1"
    )


@pytest.mark.asyncio
async def test_scopes_must_be_granted(registry, confidential_client):
    assert registry.validate_scopes(confidential_client, ["openid", "email"])
    assert registry.validate_scopes(confidential_client, [])
    assert not registry.validate_scopes(confidential_client, ["openid", "admin"])


@pytest.mark.asyncio
async def test_register_client_returns_secret_once(registry, db_session):
    client, secret = await registry.register_client(
        name="New App",
        redirect_uris=["https://new.example.com/cb"],
        allowed_origin="https://new.example.com",
    )

    assert client.client_secret_hash == hash_code(secret)
    assert client.scopes == ["openid", "profile", "email"]
    assert await registry.validate_client(client.id, secret) is not None
    assert "https://new.example.com" in await registry.allowed_origins()
