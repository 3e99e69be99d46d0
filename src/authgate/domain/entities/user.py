"""User entity for email-code authentication.

Users are identified globally by a unique email address. A user is
created on first successful sign-in and completes onboarding by
providing a display name and an organization.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class User:
    """User entity representing a signed-in person.

    Attributes:
        id: Unique identifier (UUID string).
        email: Email address (unique, lower-cased).
        name: Display name, set during onboarding.
        organization: Organization name, set during onboarding.
        image: Optional avatar URL.
        email_verified: When the email address was last verified.
        onboarding_completed: Whether the onboarding form was submitted.
        created_at: Timestamp when the user was created.
    """

    id: str
    email: str
    name: str | None = None
    organization: str | None = None
    image: str | None = None
    email_verified: datetime | None = None
    onboarding_completed: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email:
            raise ValueError("Email is required")

    @property
    def has_completed_onboarding(self) -> bool:
        """A user is onboarded once the form was submitted with both fields."""
        return bool(self.onboarding_completed and self.name and self.organization)

    @property
    def display_name(self) -> str:
        return self.name or "Member"
