"""Pydantic schemas for API requests and responses."""

from authgate.infrastructure.api.schemas.auth_schemas import (
    CamelModel,
    OnboardingRequest,
    SendCodeRequest,
    SessionResponse,
    SessionUserResponse,
    SignInRequest,
    SignInResponse,
    VerifyEmailRequest,
)
from authgate.infrastructure.api.schemas.email_change_schemas import (
    CancelEmailChangeRequest,
    InitiateEmailChangeRequest,
    ResendEmailChangeRequest,
    VerifyEmailChangeRequest,
)
from authgate.infrastructure.api.schemas.profile_schemas import (
    ProfileResponse,
    ProfileUserResponse,
    UpdateProfileRequest,
)

__all__ = [
    "CamelModel",
    "CancelEmailChangeRequest",
    "InitiateEmailChangeRequest",
    "OnboardingRequest",
    "ProfileResponse",
    "ProfileUserResponse",
    "ResendEmailChangeRequest",
    "SendCodeRequest",
    "SessionResponse",
    "SessionUserResponse",
    "SignInRequest",
    "SignInResponse",
    "UpdateProfileRequest",
    "VerifyEmailChangeRequest",
    "VerifyEmailRequest",
]
