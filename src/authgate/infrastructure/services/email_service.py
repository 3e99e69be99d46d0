"""Email service for sending sign-in and email-change codes.

Renders the built-in Jinja2 templates and hands the result to the
provider selected by the ``email_provider`` setting.
"""

from typing import Any

from authgate.core.config import Settings, get_settings
from authgate.core.logging import get_logger
from authgate.infrastructure.services.email.console_provider import ConsoleEmailProvider
from authgate.infrastructure.services.email.email_provider import EmailProvider
from authgate.infrastructure.services.email.resend_provider import ResendProvider
from authgate.infrastructure.services.email.sendgrid_provider import SendGridProvider
from authgate.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from authgate.infrastructure.services.email.template_renderer import get_template_renderer
from authgate.infrastructure.services.email.templates import (
    EMAIL_CHANGE_NEW,
    EMAIL_CHANGE_OLD,
    SIGNIN_CODE,
    EmailTemplate,
)

logger = get_logger(__name__)


def create_email_provider(settings: Settings) -> EmailProvider:
    """Build the email provider named by configuration.

    Raises:
        ValueError: If the chosen provider is missing its credentials.
    """
    if settings.email_provider == "smtp":
        return SMTPProvider(
            SMTPSettings(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
            )
        )
    if settings.email_provider == "resend":
        if not settings.resend_api_key:
            raise ValueError("AUTHGATE_RESEND_API_KEY is required for the resend provider")
        return ResendProvider(settings.resend_api_key)
    if settings.email_provider == "sendgrid":
        if not settings.sendgrid_api_key:
            raise ValueError("AUTHGATE_SENDGRID_API_KEY is required for the sendgrid provider")
        return SendGridProvider(settings.sendgrid_api_key)
    return ConsoleEmailProvider()


class EmailService:
    """Service for sending templated transactional emails."""

    def __init__(
        self,
        provider: EmailProvider | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the email service.

        Args:
            provider: Delivery provider. Defaults to the configured one.
            settings: Application settings. Defaults to the cached settings.
        """
        self.settings = settings or get_settings()
        self.provider = provider or create_email_provider(self.settings)

    async def check_connection(self) -> tuple[bool, str | None]:
        """Check that the configured provider is reachable and accepts our credentials.

        Returns:
            Tuple of (success, error_message).
        """
        success, error = await self.provider.test_connection()
        logger.info(
            "Email provider connection checked",
            provider=type(self.provider).__name__,
            success=success,
        )
        return success, error

    async def send_template_email(
        self,
        to: str,
        template: EmailTemplate,
        variables: dict[str, Any],
    ) -> bool:
        """Render a template and send it.

        Returns:
            True if the provider accepted the message.
        """
        variables = {"app_name": self.settings.app_name, **variables}
        html = get_template_renderer(html=True)
        text = get_template_renderer(html=False)

        subject = text.render(template.subject, variables)
        sent = await self.provider.send_email(
            to=to,
            subject=subject,
            html_body=html.render(template.html_body, variables),
            text_body=text.render(template.text_body, variables),
            from_email=self.settings.email_from,
            from_name=self.settings.email_from_name,
            reply_to=self.settings.email_reply_to,
        )
        logger.info("Email dispatched", to=to, subject=subject, sent=sent)
        return sent

    async def send_signin_code(
        self,
        to: str,
        code: str,
        magic_link: str,
        expires_in_minutes: int,
    ) -> bool:
        """Send a one-time sign-in code."""
        return await self.send_template_email(
            to,
            SIGNIN_CODE,
            {
                "code": code,
                "magic_link": magic_link,
                "expires_in_minutes": expires_in_minutes,
            },
        )

    async def send_email_change_code(
        self,
        to: str,
        code: str,
        magic_link: str,
        expires_in_minutes: int,
        is_old_email: bool,
        display_name: str,
        current_email: str,
        new_email: str,
    ) -> bool:
        """Send one side's confirmation code for an email change."""
        return await self.send_template_email(
            to,
            EMAIL_CHANGE_OLD if is_old_email else EMAIL_CHANGE_NEW,
            {
                "code": code,
                "magic_link": magic_link,
                "expires_in_minutes": expires_in_minutes,
                "display_name": display_name,
                "current_email": current_email,
                "new_email": new_email,
            },
        )
