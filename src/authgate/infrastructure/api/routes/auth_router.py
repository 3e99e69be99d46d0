"""Email sign-in, session and onboarding routes.

Sign-in is passwordless: a 6-digit code is mailed to the address and
exchanged for a session cookie. A code can be checked first through
``/verify-email`` without being consumed.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from authgate.core.logging import get_logger
from authgate.domain.entities.user import User
from authgate.domain.services import EmailVerificationService, normalize_email
from authgate.infrastructure.api.dependencies import (
    AuthenticatedUser,
    DbSession,
    OptionalUser,
    get_email_verification_service,
)
from authgate.infrastructure.api.schemas import (
    OnboardingRequest,
    SendCodeRequest,
    SessionResponse,
    SessionUserResponse,
    SignInRequest,
    SignInResponse,
    VerifyEmailRequest,
)
from authgate.infrastructure.api.session_cookie import (
    clear_session_cookie,
    set_session_cookie,
)
from authgate.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)

router = APIRouter()

VerificationService = Annotated[
    EmailVerificationService, Depends(get_email_verification_service)
]


@router.post("/auth/email/send")
async def send_code(request: SendCodeRequest, service: VerificationService) -> dict:
    """Mail a fresh sign-in code, invalidating any earlier one."""
    await service.create_email_verification(str(request.email), request.callback_url)
    return {"success": True}


@router.post(
    "/verify-email",
    responses={400: {"description": "Missing fields or invalid code"}},
)
async def verify_email(request: VerifyEmailRequest, service: VerificationService):
    """Check a sign-in code without consuming it."""
    if not request.email or not request.code:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Email and verification code are required"},
        )

    if not await service.verify_email_code(request.email, request.code, consume=False):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid verification code"},
        )

    return {"success": True, "canSignIn": True}


@router.post(
    "/auth/email/signin",
    response_model=SignInResponse,
    responses={400: {"description": "Invalid verification code"}},
)
async def sign_in(
    request: SignInRequest,
    session: DbSession,
    service: VerificationService,
):
    """Consume a sign-in code and start a session.

    The user is created on first sign-in. Every successful sign-in stamps
    the address as verified.
    """
    email = normalize_email(str(request.email))
    if not await service.verify_email_code(email, request.code, consume=True):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid verification code"},
        )

    user_repo = UserRepository(session)
    now = datetime.now(timezone.utc)
    user = await user_repo.get_by_email(email)
    if user is None:
        try:
            user = await user_repo.create(User(id=str(uuid.uuid4()), email=email))
            await session.commit()
            logger.info("User created on first sign-in", user_id=user.id, email=email)
        except IntegrityError:
            # Concurrent first sign-in for the same address
            await session.rollback()
            user = await user_repo.get_by_email(email)
            if user is None:
                raise

    await user_repo.mark_email_verified(user.id, now)
    await session.commit()
    user.email_verified = now

    response = JSONResponse(
        content=SignInResponse(user=SessionUserResponse.from_user(user)).model_dump(
            mode="json", by_alias=True
        )
    )
    set_session_cookie(response, user.id, user.email)
    logger.info("User signed in", user_id=user.id)
    return response


@router.post("/auth/signout")
async def sign_out(user: OptionalUser):
    """Clear the session cookie."""
    response = JSONResponse(content={"success": True})
    clear_session_cookie(response)
    if user is not None:
        logger.info("User signed out", user_id=user.id)
    return response


@router.get("/session", response_model=SessionResponse)
async def get_session(user: OptionalUser) -> SessionResponse:
    """Return the signed-in user, or ``{user: null}``."""
    if user is None:
        return SessionResponse(user=None)
    return SessionResponse(user=SessionUserResponse.from_user(user))


@router.post(
    "/onboarding",
    responses={
        400: {"description": "Missing name or organization"},
        401: {"description": "Not signed in"},
    },
)
async def complete_onboarding(
    request: OnboardingRequest,
    user: AuthenticatedUser,
    session: DbSession,
):
    """Save the user's name and organization."""
    name = (request.name or "").strip()
    organization = (request.organization or "").strip()
    if not name or not organization:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Name and organization are required"},
        )

    await UserRepository(session).complete_onboarding(user.id, name, organization)
    await session.commit()
    logger.info("Onboarding completed", user_id=user.id)
    return {"success": True}
