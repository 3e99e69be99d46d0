"""Console email provider for development.

Writes outgoing mail to the structured log instead of delivering it.
"""

from authgate.core.logging import get_logger
from authgate.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class ConsoleEmailProvider(EmailProvider):
    """Email provider that logs messages and records them in ``outbox``."""

    def __init__(self) -> None:
        self.outbox: list[dict[str, str | None]] = []

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
        self.outbox.append(
            {
                "to": to,
                "subject": subject,
                "html_body": html_body,
                "text_body": text_body,
                "from_email": from_email,
                "from_name": from_name,
                "reply_to": reply_to,
            }
        )
        logger.info(
            "Email written to console",
            to=to,
            subject=subject,
            body=text_body,
        )
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        return True, None
