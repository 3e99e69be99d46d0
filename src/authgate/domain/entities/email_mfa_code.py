"""Email MFA code entity.

One-time 6-digit sign-in code sent to an email address. Only the
SHA-256 digest of the code is stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid


@dataclass
class EmailMfaCode:
    """Email sign-in code entity.

    Attributes:
        email: Address the code was sent to (lower-cased).
        code_hash: SHA-256 hex digest of the code.
        expires_at: When the code expires.
        id: Unique identifier (UUID string).
        consumed_at: When the code was consumed (null while usable).
        attempt_count: Number of failed verification attempts.
        created_at: When the code was created.
    """

    email: str
    code_hash: str
    expires_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    consumed_at: datetime | None = None
    attempt_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.now(timezone.utc))

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None
