"""Resend email provider implementation.

Uses the Resend Python SDK for email sending via Resend API.
"""

import asyncio

import resend

from authgate.core.logging import get_logger
from authgate.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class ResendProvider(EmailProvider):
    """Resend email provider implementation."""

    def __init__(self, api_key: str) -> None:
        """Initialize the Resend provider.

        Args:
            api_key: Resend API key.
        """
        self.api_key = api_key
        resend.api_key = api_key

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_email: str,
        from_name: str,
        reply_to: str | None = None,
    ) -> bool:
        """Send an email via Resend.

        Raises:
            Exception: If the Resend API rejects the message.
        """
        params = {
            "from": f"{from_name} <{from_email}>",
            "to": [to],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        if reply_to:
            params["reply_to"] = reply_to

        try:
            # Resend SDK is synchronous
            response = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            logger.error("Resend API error", error=str(e), to=to)
            raise

        logger.info("Email sent via Resend", email_id=response.get("id"), to=to)
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        """Validate the API key with a lightweight domains listing."""
        try:
            await asyncio.to_thread(resend.Domains.list)
        except Exception as e:
            error_msg = f"Resend connection failed: {e}"
            logger.error("Resend connection test failed", error=str(e))
            return False, error_msg
        return True, None
