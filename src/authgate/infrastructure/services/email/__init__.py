"""Email delivery providers and template rendering."""

from authgate.infrastructure.services.email.console_provider import ConsoleEmailProvider
from authgate.infrastructure.services.email.email_provider import EmailProvider
from authgate.infrastructure.services.email.resend_provider import ResendProvider
from authgate.infrastructure.services.email.sendgrid_provider import SendGridProvider
from authgate.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from authgate.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)

__all__ = [
    "ConsoleEmailProvider",
    "EmailProvider",
    "ResendProvider",
    "SMTPProvider",
    "SMTPSettings",
    "SendGridProvider",
    "TemplateRenderer",
    "get_template_renderer",
]
