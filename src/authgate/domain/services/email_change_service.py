"""Service for the dual-sided email change workflow.

A change is confirmed by a code sent to the current address and a code
sent to the new address, in either order. Once both sides are verified
the user's email is swapped in the same transaction that re-checks the
new address is still free.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.config import Settings, get_settings
from authgate.core.logging import get_logger
from authgate.domain.entities.email_change_request import (
    EmailChangeError,
    EmailChangeRequest,
    EmailChangeTarget,
    VerifyResult,
)
from authgate.infrastructure.auth.token_codec import (
    digests_match,
    generate_numeric_code,
    hash_code,
)
from authgate.infrastructure.persistence.repositories.email_change_repository import (
    EmailChangeRepository,
)
from authgate.infrastructure.persistence.repositories.user_repository import UserRepository
from authgate.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    """Loose syntactic check: something@something.tld with no whitespace."""
    return bool(EMAIL_PATTERN.match(email))


class EmailChangeResendError(Exception):
    """Raised when codes cannot be resent for a request."""

    def __init__(self, error: EmailChangeError, message: str) -> None:
        super().__init__(message)
        self.error = error
        self.message = message


class EmailChangeDeliveryError(Exception):
    """Raised when a new request was stored but its codes could not be mailed.

    The request stays open so the codes can be resent.
    """

    def __init__(self, request_id: str, failed: list[EmailChangeTarget]) -> None:
        super().__init__(f"Failed to deliver email change codes for request {request_id}")
        self.request_id = request_id
        self.failed = failed


class EmailChangeService:
    """Service for handling email change business logic."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        change_repo: EmailChangeRepository,
        email_service: EmailService,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the email change service.

        Args:
            session: SQLAlchemy async session.
            user_repo: Repository for user operations.
            change_repo: Repository for email change requests.
            email_service: Service for sending emails.
            settings: Application settings. Defaults to the cached settings.
        """
        self.session = session
        self.user_repo = user_repo
        self.change_repo = change_repo
        self.email_service = email_service
        self.settings = settings or get_settings()

    @property
    def max_attempts(self) -> int:
        return self.settings.email_change_max_attempts

    async def is_email_in_use(self, email: str, exclude_user_id: str | None = None) -> bool:
        """Check whether another user already holds ``email``."""
        return await self.user_repo.email_exists(email, exclude_user_id)

    async def check_rate_limit(self, user_id: str) -> bool:
        """Check the user is under the request limit for the rolling window.

        Returns:
            True if another request may be initiated.
        """
        since = datetime.now(timezone.utc) - timedelta(
            hours=self.settings.email_change_rate_limit_hours
        )
        recent = await self.change_repo.count_created_since(user_id, since)
        return recent < self.settings.email_change_rate_limit_requests

    def _magic_link(self, request_id: str, target: EmailChangeTarget, code: str) -> str:
        query = {"requestId": request_id, "target": target.value, "code": code}
        return f"{self.settings.external_url}/profile/email-change/verify?{urlencode(query)}"

    async def _send_code(
        self,
        request: EmailChangeRequest,
        target: EmailChangeTarget,
        code: str,
        display_name: str,
    ) -> bool:
        is_old = target is EmailChangeTarget.OLD
        return await self.email_service.send_email_change_code(
            to=request.current_email if is_old else request.new_email,
            code=code,
            magic_link=self._magic_link(request.id, target, code),
            expires_in_minutes=self.settings.email_change_code_expire_minutes,
            is_old_email=is_old,
            display_name=display_name,
            current_email=request.current_email,
            new_email=request.new_email,
        )

    async def _deliver(
        self,
        request: EmailChangeRequest,
        codes: dict[EmailChangeTarget, str],
        display_name: str,
    ) -> list[EmailChangeTarget]:
        """Mail each side's code, returning the sides that could not be delivered."""
        failed = []
        for target, code in codes.items():
            try:
                sent = await self._send_code(request, target, code, display_name)
            except Exception as e:
                logger.error(
                    "Email change code delivery failed",
                    request_id=request.id,
                    target=target.value,
                    error=str(e),
                    exc_type=type(e).__name__,
                )
                failed.append(target)
                continue
            if not sent:
                logger.error(
                    "Email change code rejected by provider",
                    request_id=request.id,
                    target=target.value,
                )
                failed.append(target)
        return failed

    async def initiate_email_change(
        self,
        user_id: str,
        current_email: str,
        new_email: str,
        display_name: str,
    ) -> str:
        """Start an email change and mail a code to both addresses.

        Callers must have checked syntax, uniqueness and the rate limit.
        Any open request of the user is cancelled.

        Returns:
            The new request ID.

        Raises:
            EmailChangeDeliveryError: If a code could not be mailed. The
                request is kept so the codes can be resent.
        """
        normalized = new_email.strip().lower()
        now = datetime.now(timezone.utc)
        old_code = generate_numeric_code()
        new_code = generate_numeric_code()

        request = EmailChangeRequest(
            user_id=user_id,
            current_email=current_email,
            new_email=normalized,
            old_email_code_hash=hash_code(old_code),
            new_email_code_hash=hash_code(new_code),
            expires_at=now + timedelta(hours=self.settings.email_change_request_expire_hours),
            created_at=now,
        )

        await self.change_repo.delete_expired()
        cancelled = await self.change_repo.cancel_open_for_user(user_id, now)
        await self.change_repo.create(request)
        await self.session.commit()

        failed = await self._deliver(
            request,
            {EmailChangeTarget.OLD: old_code, EmailChangeTarget.NEW: new_code},
            display_name,
        )

        if not self.settings.is_production:
            logger.info(
                "Email change codes generated (development)",
                request_id=request.id,
                old_email_code=old_code,
                new_email_code=new_code,
            )
        logger.info(
            "Email change initiated",
            user_id=user_id,
            request_id=request.id,
            new_email=normalized,
            superseded=cancelled,
        )
        if failed:
            raise EmailChangeDeliveryError(request.id, failed)
        return request.id

    async def verify_old_email(self, request_id: str, code: str, user_id: str) -> VerifyResult:
        """Verify the code sent to the current address."""
        return await self._verify(request_id, code, user_id, EmailChangeTarget.OLD)

    async def verify_new_email(self, request_id: str, code: str, user_id: str) -> VerifyResult:
        """Verify the code sent to the new address."""
        return await self._verify(request_id, code, user_id, EmailChangeTarget.NEW)

    async def _verify(
        self,
        request_id: str,
        code: str,
        user_id: str,
        target: EmailChangeTarget,
    ) -> VerifyResult:
        request = await self.change_repo.get_open(request_id, user_id)
        if request is None:
            return VerifyResult.failure(
                EmailChangeError.NOT_FOUND, "Email change request not found"
            )

        now = datetime.now(timezone.utc)
        if request.is_expired(now):
            return VerifyResult.failure(
                EmailChangeError.EXPIRED, "Email change request has expired"
            )

        if request.is_verified(target):
            if request.both_verified:
                # A previous completion attempt lost a race; try again
                return await self.complete_email_change(request.id, user_id, request.new_email)
            return VerifyResult(
                success=True,
                old_email_verified=request.old_email_verified,
                new_email_verified=request.new_email_verified,
                complete=False,
            )

        if request.attempt_count(target) >= self.max_attempts:
            return VerifyResult.failure(
                EmailChangeError.MAX_ATTEMPTS, "Too many failed attempts", request
            )

        if not digests_match(request.code_hash(target), hash_code(code.strip())):
            await self.change_repo.increment_attempts(request.id, target)
            await self.session.commit()
            logger.info(
                "Email change code mismatch",
                request_id=request.id,
                target=target.value,
                attempt_count=request.attempt_count(target) + 1,
            )
            return VerifyResult.failure(
                EmailChangeError.INVALID_CODE, "Invalid verification code", request
            )

        await self.change_repo.mark_verified(request.id, target, now)
        await self.session.commit()

        if target is EmailChangeTarget.OLD:
            request.old_email_verified = True
        else:
            request.new_email_verified = True
        logger.info("Email change side verified", request_id=request.id, target=target.value)

        # The other side may have been verified by a concurrent request
        progress = await self.change_repo.get_progress(request.id)
        if progress is not None:
            request.old_email_verified = request.old_email_verified or progress.old_verified
            request.new_email_verified = request.new_email_verified or progress.new_verified

        if request.both_verified:
            return await self.complete_email_change(request.id, user_id, request.new_email)

        return VerifyResult(
            success=True,
            old_email_verified=request.old_email_verified,
            new_email_verified=request.new_email_verified,
            complete=False,
        )

    async def complete_email_change(
        self,
        request_id: str,
        user_id: str,
        new_email: str,
    ) -> VerifyResult:
        """Swap the user's email once both sides are verified.

        Runs as one transaction. If the address was claimed by another
        account in the meantime the request stays open with both sides
        verified and ``EMAIL_IN_USE`` is returned.
        """
        email_taken = VerifyResult.failure(
            EmailChangeError.EMAIL_IN_USE,
            "This email address was claimed by another account. Please try a different email.",
        )
        email_taken.old_email_verified = True
        email_taken.new_email_verified = True

        now = datetime.now(timezone.utc)
        try:
            if await self.user_repo.email_exists(new_email, exclude_user_id=user_id):
                await self.session.rollback()
                logger.warning("Email change target claimed mid-flow", request_id=request_id)
                return email_taken

            await self.user_repo.update_email(user_id, new_email, now)
            if not await self.change_repo.mark_completed(request_id, now):
                await self.session.rollback()
                progress = await self.change_repo.get_progress(request_id)
                if progress is not None and progress.completed:
                    logger.info("Email change already completed", request_id=request_id)
                    return VerifyResult(
                        success=True,
                        old_email_verified=True,
                        new_email_verified=True,
                        complete=True,
                    )
                return VerifyResult.failure(
                    EmailChangeError.NOT_FOUND, "Email change request not found"
                )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning("Email change lost uniqueness race", request_id=request_id)
            return email_taken

        logger.info("Email change completed", user_id=user_id, request_id=request_id)
        return VerifyResult(
            success=True,
            old_email_verified=True,
            new_email_verified=True,
            complete=True,
        )

    async def resend_email_change_codes(
        self,
        request_id: str,
        user_id: str,
        target: str,
        display_name: str,
    ) -> None:
        """Mint and resend codes for the unverified requested sides.

        Args:
            target: ``old``, ``new`` or ``both``.

        Raises:
            EmailChangeResendError: ``NOT_FOUND``, ``EXPIRED`` or ``DELIVERY_FAILED``.
        """
        request = await self.change_repo.get_open(request_id, user_id)
        if request is None:
            raise EmailChangeResendError(EmailChangeError.NOT_FOUND, "Request not found")
        if request.is_expired():
            raise EmailChangeResendError(EmailChangeError.EXPIRED, "Request expired")

        sides = list(EmailChangeTarget) if target == "both" else [EmailChangeTarget(target)]
        fresh: dict[EmailChangeTarget, str] = {}
        for side in sides:
            if request.is_verified(side):
                continue
            code = generate_numeric_code()
            await self.change_repo.reset_code(request.id, side, hash_code(code))
            fresh[side] = code
        await self.session.commit()

        failed = await self._deliver(request, fresh, display_name)
        if not self.settings.is_production:
            for side, code in fresh.items():
                logger.info("Resent email change code (development)", target=side.value, code=code)

        logger.info(
            "Email change codes resent",
            request_id=request.id,
            targets=[side.value for side in fresh],
        )
        if failed:
            raise EmailChangeResendError(
                EmailChangeError.DELIVERY_FAILED,
                "Failed to send verification email. Please try again.",
            )

    async def cancel_email_change(self, request_id: str, user_id: str) -> bool:
        """Cancel an open request owned by the user."""
        cancelled = await self.change_repo.cancel(request_id, user_id, datetime.now(timezone.utc))
        await self.session.commit()
        if cancelled:
            logger.info("Email change cancelled", user_id=user_id, request_id=request_id)
        return cancelled

    async def get_pending_email_change(self, user_id: str) -> dict[str, Any] | None:
        """Get the user's open, unexpired request in its wire shape."""
        request = await self.change_repo.get_pending_for_user(user_id)
        if request is None:
            return None
        return {
            "requestId": request.id,
            "newEmail": request.new_email,
            "oldEmailVerified": request.old_email_verified,
            "newEmailVerified": request.new_email_verified,
            "expiresAt": request.expires_at.isoformat(),
        }
