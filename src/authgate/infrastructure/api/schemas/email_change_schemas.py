"""Pydantic schemas for the email change endpoints."""

from typing import Literal

from pydantic import Field

from authgate.infrastructure.api.schemas.auth_schemas import CamelModel


class InitiateEmailChangeRequest(CamelModel):
    """Request body for starting an email change.

    Syntax is checked by the endpoint so failures map to ``INVALID_EMAIL``.
    """

    new_email: str | None = None


class VerifyEmailChangeRequest(CamelModel):
    """Request body for verifying one side of an email change."""

    request_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=16)


class ResendEmailChangeRequest(CamelModel):
    """Request body for resending email change codes."""

    request_id: str = Field(..., min_length=1)
    target: Literal["old", "new", "both"]


class CancelEmailChangeRequest(CamelModel):
    """Request body for cancelling an email change."""

    request_id: str | None = None
