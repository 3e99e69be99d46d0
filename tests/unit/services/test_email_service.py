"""Unit tests for the email service and its templates."""

from unittest.mock import AsyncMock

import pytest

from authgate.core.config import Settings
from authgate.infrastructure.services.email.console_provider import ConsoleEmailProvider
from authgate.infrastructure.services.email.resend_provider import ResendProvider
from authgate.infrastructure.services.email.sendgrid_provider import SendGridProvider
from authgate.infrastructure.services.email.smtp_provider import SMTPProvider
from authgate.infrastructure.services.email.template_renderer import TemplateRenderer
from authgate.infrastructure.services.email_service import EmailService, create_email_provider


@pytest.fixture
def provider():
    return ConsoleEmailProvider()


@pytest.fixture
def service(provider):
    return EmailService(provider=provider, settings=Settings(email_from="auth@example.com"))


@pytest.mark.asyncio
async def test_signin_code_email(service, provider):
    sent = await service.send_signin_code(
        to="alice@example.com",
        code="123456",
        magic_link="http://localhost:3000/login/email/verify?email=alice%40example.com&code=123456",
        expires_in_minutes=10,
    )

    assert sent is True
    message = provider.outbox[0]
    assert message["to"] == "alice@example.com"
    assert message["subject"] == "Your AuthGate sign-in code"
    assert message["from_email"] == "auth@example.com"
    assert "Your sign-in code is 123456." in message["text_body"]
    assert "<strong>123456</strong>" in message["html_body"]
    assert "10 minutes" in message["text_body"]
    # Query string ampersands are escaped in HTML only
    assert "&amp;code=123456" in message["html_body"]
    assert "&code=123456" in message["text_body"]


@pytest.mark.asyncio
async def test_email_change_templates_differ_per_side(service, provider):
    common = dict(
        code="654321",
        magic_link="http://localhost:3000/profile/email-change/verify",
        expires_in_minutes=10,
        display_name="Alice",
        current_email="alice@example.com",
        new_email="alice@new.example.com",
    )
    await service.send_email_change_code(to="alice@example.com", is_old_email=True, **common)
    await service.send_email_change_code(to="alice@new.example.com", is_old_email=False, **common)

    old, new = provider.outbox
    assert old["subject"] == "Confirm your email change request"
    assert "from alice@example.com to alice@new.example.com" in old["text_body"]
    assert new["subject"] == "Verify your new AuthGate email"
    assert "Use the code 654321" in new["text_body"]


@pytest.mark.asyncio
async def test_display_name_is_escaped_in_html(service, provider):
    await service.send_email_change_code(
        to="alice@example.com",
        code="654321",
        magic_link="http://localhost:3000/verify",
        expires_in_minutes=10,
        is_old_email=True,
        display_name="<script>alert(1)</script>",
        current_email="alice@example.com",
        new_email="alice@new.example.com",
    )

    assert "<script>" not in provider.outbox[0]["html_body"]
    assert "&lt;script&gt;" in provider.outbox[0]["html_body"]


def test_renderer_without_autoescape():
    renderer = TemplateRenderer(autoescape=False)
    assert renderer.render("Hi {{ name }}", {"name": "<b>"}) == "Hi <b>"


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({}, ConsoleEmailProvider),
        ({"email_provider": "smtp"}, SMTPProvider),
        ({"email_provider": "resend", "resend_api_key": "re_key"}, ResendProvider),
        ({"email_provider": "sendgrid", "sendgrid_api_key": "SG.key"}, SendGridProvider),
    ],
)
def test_create_email_provider(overrides, expected):
    assert isinstance(create_email_provider(Settings(**overrides)), expected)


@pytest.mark.parametrize("provider_name", ["resend", "sendgrid"])
def test_api_providers_require_key(provider_name):
    with pytest.raises(ValueError):
        create_email_provider(Settings(email_provider=provider_name))


@pytest.mark.asyncio
async def test_check_connection_delegates_to_provider():
    provider = AsyncMock()
    provider.test_connection.return_value = (False, "SMTP connection failed: refused")
    service = EmailService(provider=provider, settings=Settings())

    assert await service.check_connection() == (False, "SMTP connection failed: refused")
    provider.test_connection.assert_awaited_once()
