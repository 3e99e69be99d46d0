"""Pydantic schemas for email sign-in, session and onboarding endpoints.

Wire names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from authgate.domain.entities.user import User


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either casing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendCodeRequest(CamelModel):
    """Request body for sending an email sign-in code."""

    email: EmailStr = Field(..., description="Address to send the code to")
    callback_url: str | None = Field(None, description="Where the magic link lands after sign-in")


class VerifyEmailRequest(CamelModel):
    """Request body for checking a sign-in code without consuming it.

    Fields are optional so missing values get a 400 with a readable error.
    """

    email: str | None = None
    code: str | None = None


class SignInRequest(CamelModel):
    """Request body for signing in with an email code."""

    email: EmailStr = Field(..., description="Address the code was sent to")
    code: str = Field(..., min_length=1, max_length=16, description="6-digit sign-in code")


class OnboardingRequest(CamelModel):
    """Request body for completing onboarding."""

    name: str | None = None
    organization: str | None = None


class SessionUserResponse(CamelModel):
    """The signed-in user as exposed to the browser."""

    id: str
    email: str
    name: str | None = None
    organization: str | None = None
    image: str | None = None
    email_verified: datetime | None = None
    onboarding_completed: bool = False

    @classmethod
    def from_user(cls, user: User) -> "SessionUserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            organization=user.organization,
            image=user.image,
            email_verified=user.email_verified,
            onboarding_completed=user.has_completed_onboarding,
        )


class SessionResponse(CamelModel):
    """Response for reading the current session."""

    user: SessionUserResponse | None = None


class SignInResponse(CamelModel):
    """Response for a successful sign-in."""

    success: bool = True
    user: SessionUserResponse
