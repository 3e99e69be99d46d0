"""SendGrid email provider implementation.

Talks to the SendGrid v3 mail API directly over httpx.
"""

import httpx

from authgate.core.logging import get_logger
from authgate.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)

SENDGRID_API_BASE = "https://api.sendgrid.com/v3"


class SendGridProvider(EmailProvider):
    """SendGrid email provider implementation."""

    def __init__(self, api_key: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

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
        """Send an email via SendGrid.

        Raises:
            httpx.HTTPStatusError: If SendGrid rejects the message.
        """
        body: dict = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": from_email, "name": from_name},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text_body},
                {"type": "text/html", "value": html_body},
            ],
        }
        if reply_to:
            body["reply_to"] = {"email": reply_to}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{SENDGRID_API_BASE}/mail/send",
                json=body,
                headers=self._headers,
            )

        if response.is_error:
            logger.error(
                "SendGrid email send failed",
                status=response.status_code,
                body=response.text,
                to=to,
            )
            response.raise_for_status()

        logger.info("Email sent via SendGrid", to=to)
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        """Check the API key against the scopes endpoint."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{SENDGRID_API_BASE}/scopes", headers=self._headers)
        except httpx.HTTPError as e:
            return False, f"SendGrid connection failed: {e}"

        if response.is_error:
            return False, f"SendGrid connection failed: HTTP {response.status_code}"
        return True, None
