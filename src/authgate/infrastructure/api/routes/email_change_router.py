"""Email change routes.

All endpoints require a signed-in user. Verification results carry an
error kind that maps to the HTTP status of the response.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from authgate.core.logging import get_logger
from authgate.domain.entities.email_change_request import EmailChangeError, VerifyResult
from authgate.domain.services import (
    EmailChangeDeliveryError,
    EmailChangeResendError,
    EmailChangeService,
    is_valid_email,
)
from authgate.infrastructure.api.dependencies import (
    AuthenticatedUser,
    get_email_change_service,
)
from authgate.infrastructure.api.schemas import (
    CancelEmailChangeRequest,
    InitiateEmailChangeRequest,
    ResendEmailChangeRequest,
    VerifyEmailChangeRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/profile/email")

ChangeService = Annotated[EmailChangeService, Depends(get_email_change_service)]

ERROR_STATUS = {
    EmailChangeError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    EmailChangeError.EXPIRED: status.HTTP_410_GONE,
    EmailChangeError.EMAIL_IN_USE: status.HTTP_409_CONFLICT,
    EmailChangeError.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    EmailChangeError.DELIVERY_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def _error(error: EmailChangeError, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(error, status.HTTP_400_BAD_REQUEST),
        content={"error": error.value, "message": message},
    )


def _verify_response(result: VerifyResult) -> JSONResponse:
    status_code = status.HTTP_200_OK
    if not result.success and result.error is not None:
        status_code = ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status_code, content=result.to_dict())


@router.post("/initiate")
async def initiate_email_change(
    request: InitiateEmailChangeRequest,
    user: AuthenticatedUser,
    service: ChangeService,
):
    """Start a change and mail a code to both the current and new address."""
    new_email = (request.new_email or "").strip().lower()
    if not new_email or not is_valid_email(new_email):
        return _error(EmailChangeError.INVALID_EMAIL, "Please enter a valid email address")

    if new_email == user.email.lower():
        return _error(
            EmailChangeError.SAME_EMAIL, "New email must be different from your current email"
        )

    if await service.is_email_in_use(new_email, exclude_user_id=user.id):
        logger.info("Email change rejected: address in use", user_id=user.id)
        return _error(
            EmailChangeError.EMAIL_IN_USE,
            "This email address is already associated with another account",
        )

    if not await service.check_rate_limit(user.id):
        logger.info("Email change rejected: rate limited", user_id=user.id)
        return _error(
            EmailChangeError.RATE_LIMITED,
            "Too many email change requests. Please try again later.",
        )

    try:
        request_id = await service.initiate_email_change(
            user_id=user.id,
            current_email=user.email,
            new_email=new_email,
            display_name=user.display_name,
        )
    except EmailChangeDeliveryError as e:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "error": EmailChangeError.DELIVERY_FAILED.value,
                "message": "Failed to send verification emails. Please resend the codes.",
                "requestId": e.request_id,
            },
        )
    return {
        "success": True,
        "requestId": request_id,
        "message": "Verification codes sent to both email addresses",
    }


@router.post("/verify-old")
async def verify_old_email(
    request: VerifyEmailChangeRequest,
    user: AuthenticatedUser,
    service: ChangeService,
):
    """Verify the code sent to the current address."""
    result = await service.verify_old_email(request.request_id, request.code, user.id)
    return _verify_response(result)


@router.post("/verify-new")
async def verify_new_email(
    request: VerifyEmailChangeRequest,
    user: AuthenticatedUser,
    service: ChangeService,
):
    """Verify the code sent to the new address."""
    result = await service.verify_new_email(request.request_id, request.code, user.id)
    return _verify_response(result)


@router.post("/resend")
async def resend_codes(
    request: ResendEmailChangeRequest,
    user: AuthenticatedUser,
    service: ChangeService,
):
    """Mint and resend codes for the sides not yet verified."""
    try:
        await service.resend_email_change_codes(
            request_id=request.request_id,
            user_id=user.id,
            target=request.target,
            display_name=user.display_name,
        )
    except EmailChangeResendError as e:
        return _error(e.error, e.message)
    return {"success": True}


@router.get("")
async def get_pending_email_change(user: AuthenticatedUser, service: ChangeService):
    """Return the user's pending change, if any."""
    pending = await service.get_pending_email_change(user.id)
    return {"success": True, "pendingChange": pending}


@router.delete("")
async def cancel_email_change(
    request: CancelEmailChangeRequest,
    user: AuthenticatedUser,
    service: ChangeService,
):
    """Cancel an open change request."""
    if not request.request_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request ID is required"},
        )

    if not await service.cancel_email_change(request.request_id, user.id):
        return _error(EmailChangeError.NOT_FOUND, "Email change request not found")
    return {"success": True}
