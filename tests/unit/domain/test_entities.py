"""Unit tests for domain entities."""

from datetime import datetime, timedelta, timezone

import pytest

from authgate.domain.entities.email_change_request import (
    EmailChangeError,
    EmailChangeRequest,
    EmailChangeTarget,
    VerifyResult,
)
from authgate.domain.entities.oauth_client import OAuthClient
from authgate.domain.entities.oauth_token import AccessToken, RefreshToken, TokenPair
from authgate.domain.entities.user import User


def _request(**overrides) -> EmailChangeRequest:
    values = dict(
        user_id="user-1",
        current_email="alice@example.com",
        new_email="alice@new.example.com",
        old_email_code_hash="old-hash",
        new_email_code_hash="new-hash",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=24),
    )
    values.update(overrides)
    return EmailChangeRequest(**values)


def test_user_requires_id_and_email():
    with pytest.raises(ValueError):
        User(id="", email="alice@example.com")
    with pytest.raises(ValueError):
        User(id="user-1", email="")


def test_user_onboarding_needs_name_and_organization():
    assert not User(id="u", email="a@b.co", onboarding_completed=True).has_completed_onboarding
    assert User(
        id="u", email="a@b.co", name="A", organization="O", onboarding_completed=True
    ).has_completed_onboarding


def test_user_display_name_falls_back_to_member():
    assert User(id="u", email="a@b.co").display_name == "Member"
    assert User(id="u", email="a@b.co", name="Alice").display_name == "Alice"


def test_client_without_secret_is_public():
    client = OAuthClient(
        id="c",
        name="C",
        client_secret_hash="",
        redirect_uris=[],
        allowed_origin="https://c.example.com",
        scopes=["openid"],
    )
    assert not client.is_confidential


def test_token_pair_response():
    now = datetime.now(timezone.utc)
    access = AccessToken(
        token="at",
        client_id="c",
        user_id="u",
        scopes=["openid", "email"],
        expires=now + timedelta(seconds=3600),
    )
    refresh = RefreshToken(
        token="rt", access_token="at", client_id="c", user_id="u", expires=now
    )
    response = TokenPair(access_token=access, refresh_token=refresh).to_response()

    assert response["access_token"] == "at"
    assert response["refresh_token"] == "rt"
    assert response["token_type"] == "Bearer"
    assert response["scope"] == "openid email"
    assert 3590 <= response["expires_in"] <= 3600


def test_email_change_request_per_side_accessors():
    request = _request(old_email_verified=True, new_email_attempt_count=2)

    assert request.is_verified(EmailChangeTarget.OLD)
    assert not request.is_verified(EmailChangeTarget.NEW)
    assert request.attempt_count(EmailChangeTarget.NEW) == 2
    assert request.code_hash(EmailChangeTarget.OLD) == "old-hash"
    assert not request.both_verified


def test_email_change_request_open_and_expired():
    now = datetime.now(timezone.utc)
    assert _request().is_open
    assert not _request(cancelled_at=now).is_open
    assert not _request(completed_at=now).is_open
    assert _request(expires_at=now - timedelta(seconds=1)).is_expired()


def test_verify_result_wire_shape():
    result = VerifyResult.failure(
        EmailChangeError.INVALID_CODE,
        "Invalid verification code",
        _request(old_email_verified=True),
    )
    assert result.to_dict() == {
        "success": False,
        "oldEmailVerified": True,
        "newEmailVerified": False,
        "complete": False,
        "error": "INVALID_CODE",
        "message": "Invalid verification code",
    }


def test_verify_result_success_has_no_error_keys():
    data = VerifyResult(success=True, old_email_verified=True).to_dict()
    assert "error" not in data
    assert "message" not in data
