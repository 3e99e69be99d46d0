"""Email change request entity and verification outcomes.

An email change must be confirmed from both the current and the new
address before the user's email is swapped.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid


class EmailChangeError(str, Enum):
    """Failure kinds of the email change workflow."""

    INVALID_EMAIL = "INVALID_EMAIL"
    SAME_EMAIL = "SAME_EMAIL"
    EMAIL_IN_USE = "EMAIL_IN_USE"
    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    MAX_ATTEMPTS = "MAX_ATTEMPTS"
    INVALID_CODE = "INVALID_CODE"
    DELIVERY_FAILED = "DELIVERY_FAILED"


class EmailChangeTarget(str, Enum):
    """Which side of the change a code belongs to."""

    OLD = "old"
    NEW = "new"


@dataclass
class EmailChangeRequest:
    """Pending or finished request to change a user's email.

    Attributes:
        user_id: Owner of the request.
        current_email: Address at initiation time.
        new_email: Requested address (lower-cased).
        old_email_code_hash: Digest of the code sent to the current address.
        new_email_code_hash: Digest of the code sent to the new address.
        expires_at: Request expiry (24 hours after creation).
        id: Unique identifier (UUID string).
        old_email_verified: Whether the current address confirmed.
        new_email_verified: Whether the new address confirmed.
        old_email_verified_at: When the current address confirmed.
        new_email_verified_at: When the new address confirmed.
        old_email_attempt_count: Failed attempts against the old code.
        new_email_attempt_count: Failed attempts against the new code.
        created_at: When the request was created.
        completed_at: When the email was swapped.
        cancelled_at: When the request was cancelled or superseded.
    """

    user_id: str
    current_email: str
    new_email: str
    old_email_code_hash: str
    new_email_code_hash: str
    expires_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    old_email_verified: bool = False
    new_email_verified: bool = False
    old_email_verified_at: datetime | None = None
    new_email_verified_at: datetime | None = None
    old_email_attempt_count: int = 0
    new_email_attempt_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.now(timezone.utc))

    @property
    def is_open(self) -> bool:
        return self.completed_at is None and self.cancelled_at is None

    @property
    def both_verified(self) -> bool:
        return self.old_email_verified and self.new_email_verified

    def is_verified(self, target: EmailChangeTarget) -> bool:
        if target is EmailChangeTarget.OLD:
            return self.old_email_verified
        return self.new_email_verified

    def attempt_count(self, target: EmailChangeTarget) -> int:
        if target is EmailChangeTarget.OLD:
            return self.old_email_attempt_count
        return self.new_email_attempt_count

    def code_hash(self, target: EmailChangeTarget) -> str:
        if target is EmailChangeTarget.OLD:
            return self.old_email_code_hash
        return self.new_email_code_hash


@dataclass
class VerifyResult:
    """Outcome of verifying one side of an email change."""

    success: bool
    old_email_verified: bool = False
    new_email_verified: bool = False
    complete: bool = False
    error: EmailChangeError | None = None
    message: str | None = None

    @classmethod
    def failure(
        cls,
        error: EmailChangeError,
        message: str,
        request: EmailChangeRequest | None = None,
    ) -> "VerifyResult":
        return cls(
            success=False,
            old_email_verified=request.old_email_verified if request else False,
            new_email_verified=request.new_email_verified if request else False,
            error=error,
            message=message,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used on the wire."""
        data: dict[str, Any] = {
            "success": self.success,
            "oldEmailVerified": self.old_email_verified,
            "newEmailVerified": self.new_email_verified,
            "complete": self.complete,
        }
        if self.error is not None:
            data["error"] = self.error.value
        if self.message is not None:
            data["message"] = self.message
        return data
