"""Profile routes for the signed-in user."""

from urllib.parse import urlsplit

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from authgate.core.logging import get_logger
from authgate.infrastructure.api.dependencies import AuthenticatedUser, DbSession
from authgate.infrastructure.api.schemas import (
    ProfileResponse,
    ProfileUserResponse,
    UpdateProfileRequest,
)
from authgate.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/profile")


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "User not found"})


def is_http_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


@router.get("", response_model=ProfileResponse)
async def get_profile(user: AuthenticatedUser, session: DbSession):
    """Return the signed-in user's profile."""
    current = await UserRepository(session).get_by_id(user.id)
    if current is None:
        return _not_found()
    return ProfileResponse(user=ProfileUserResponse.from_user(current))


@router.post(
    "",
    response_model=ProfileResponse,
    responses={
        400: {"description": "No field given or a field is invalid"},
        404: {"description": "User not found"},
    },
)
async def update_profile(
    request: UpdateProfileRequest,
    user: AuthenticatedUser,
    session: DbSession,
):
    """Update any of name, organization and image.

    Name and organization must be non-empty after trimming. An empty or
    null image clears it; otherwise it must be an http(s) URL.
    """
    provided = request.model_fields_set
    if not provided:
        return _bad_request("At least one field must be provided")

    values: dict[str, str | None] = {}
    if "name" in provided:
        if not isinstance(request.name, str) or not request.name.strip():
            return _bad_request("Name must be a non-empty string")
        values["name"] = request.name.strip()

    if "organization" in provided:
        if not isinstance(request.organization, str) or not request.organization.strip():
            return _bad_request("Organization must be a non-empty string")
        values["organization"] = request.organization.strip()

    if "image" in provided:
        if request.image is None or request.image == "":
            values["image"] = None
        elif isinstance(request.image, str) and is_http_url(request.image):
            values["image"] = request.image
        else:
            return _bad_request("Image must be a valid URL or null")

    updated = await UserRepository(session).update_profile(user.id, **values)
    if updated is None:
        await session.rollback()
        return _not_found()
    await session.commit()

    logger.info("Profile updated", user_id=user.id, fields=sorted(values))
    return ProfileResponse(user=ProfileUserResponse.from_user(updated))
