"""Pydantic schemas for profile endpoints."""

from typing import Any

from authgate.domain.entities.user import User
from authgate.infrastructure.api.schemas.auth_schemas import CamelModel


class UpdateProfileRequest(CamelModel):
    """Request body for updating profile fields.

    Values are untyped so the endpoint can answer type errors with a 400.
    Only fields present in the body are updated.
    """

    name: Any = None
    organization: Any = None
    image: Any = None


class ProfileUserResponse(CamelModel):
    """Editable profile of the signed-in user."""

    id: str
    email: str
    name: str | None = None
    organization: str | None = None
    image: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "ProfileUserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            organization=user.organization,
            image=user.image,
        )


class ProfileResponse(CamelModel):
    """Response for reading or updating the profile."""

    success: bool = True
    user: ProfileUserResponse
