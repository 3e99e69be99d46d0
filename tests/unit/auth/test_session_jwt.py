"""Unit tests for session JWTs."""

from datetime import timedelta

import jwt
import pytest

from authgate.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
)


@pytest.fixture
def service():
    return JWTService(secret_key="test-secret-key-with-enough-length-for-hs256")


def test_session_token_round_trip(service):
    token = service.create_session_token("user-1", "alice@example.com")
    payload = service.validate_session_token(token)

    assert payload["sub"] == "user-1"
    assert payload["email"] == "alice@example.com"
    assert payload["type"] == "session"
    assert payload["iss"] == "authgate"


def test_expired_session_token(service):
    token = service.create_session_token(
        "user-1", "alice@example.com", expires_delta=timedelta(seconds=-1)
    )
    with pytest.raises(TokenExpiredError):
        service.validate_session_token(token)


def test_token_signed_with_other_key_is_invalid(service):
    other = JWTService(secret_key="another-secret-key-with-enough-length-for-hs256")
    token = other.create_session_token("user-1", "alice@example.com")
    with pytest.raises(InvalidTokenError):
        service.validate_session_token(token)


def test_non_session_token_is_rejected(service):
    token = jwt.encode(
        {"sub": "user-1", "iss": "authgate", "type": "access"},
        service.secret_key,
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        service.validate_session_token(token)
