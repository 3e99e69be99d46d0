"""Storage port for email sign-in codes.

The verification engine depends only on this interface; the backend is
chosen by the ``email_code_store`` setting.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from authgate.domain.entities.email_mfa_code import EmailMfaCode


class EmailMfaCodeStore(ABC):
    """Abstract store for one-time email codes.

    Implementations must keep at most one unconsumed code per email.
    """

    @abstractmethod
    async def replace_code(self, code: EmailMfaCode) -> EmailMfaCode:
        """Drop expired codes and the email's unconsumed codes, then store ``code``."""
        ...

    @abstractmethod
    async def get_latest_unconsumed(self, email: str) -> EmailMfaCode | None:
        """Get the most recent unconsumed code for an email, expired or not."""
        ...

    @abstractmethod
    async def mark_consumed(self, code_id: str, consumed_at: datetime) -> bool:
        """Mark an unconsumed code as consumed.

        Returns:
            True only for the caller that consumed it.
        """
        ...

    @abstractmethod
    async def increment_attempts(self, code_id: str) -> None:
        """Record a failed verification attempt."""
        ...
