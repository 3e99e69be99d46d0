"""Service for email sign-in codes.

Handles code generation, sending the sign-in email and verifying codes.
Verification can run without consuming the code so a form can check a
code before the sign-in call that consumes it.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.config import Settings, get_settings
from authgate.core.logging import get_logger
from authgate.domain.entities.email_mfa_code import EmailMfaCode
from authgate.infrastructure.auth.token_codec import (
    digests_match,
    generate_numeric_code,
    hash_code,
)
from authgate.infrastructure.persistence.stores.base import EmailMfaCodeStore
from authgate.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class EmailVerificationService:
    """Service for handling email sign-in code business logic."""

    def __init__(
        self,
        session: AsyncSession,
        code_store: EmailMfaCodeStore,
        email_service: EmailService,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the verification service.

        Args:
            session: SQLAlchemy async session, committed after each operation.
            code_store: Storage backend for codes.
            email_service: Service for sending emails.
            settings: Application settings. Defaults to the cached settings.
        """
        self.session = session
        self.code_store = code_store
        self.email_service = email_service
        self.settings = settings or get_settings()

    def build_magic_link(self, email: str, code: str, callback_url: str | None) -> str:
        query = {"email": email, "code": code, "callbackUrl": callback_url or "/"}
        return f"{self.settings.external_url}/login/email/verify?{urlencode(query)}"

    async def create_email_verification(
        self,
        email: str,
        callback_url: str | None = None,
    ) -> str:
        """Create a sign-in code for an email and send it.

        Any unconsumed code for the same address is invalidated.

        Args:
            email: Address to send the code to.
            callback_url: Where the magic link should land after sign-in.

        Returns:
            The ID of the stored code.
        """
        email = normalize_email(email)
        code = generate_numeric_code()
        now = datetime.now(timezone.utc)
        entity = EmailMfaCode(
            email=email,
            code_hash=hash_code(code),
            expires_at=now + timedelta(minutes=self.settings.mfa_code_expire_minutes),
            created_at=now,
        )

        await self.code_store.replace_code(entity)
        await self.session.commit()

        magic_link = self.build_magic_link(email, code, callback_url)
        await self.email_service.send_signin_code(
            to=email,
            code=code,
            magic_link=magic_link,
            expires_in_minutes=self.settings.mfa_code_expire_minutes,
        )

        if not self.settings.is_production:
            logger.info("Email sign-in code generated (development)", email=email, code=code)
        logger.info("Email sign-in code sent", email=email, code_id=entity.id)
        return entity.id

    async def verify_email_code(self, email: str, code: str, consume: bool = True) -> bool:
        """Verify a sign-in code.

        Args:
            email: Address the code was sent to.
            code: The 6-digit code entered by the user.
            consume: Whether a matching code should be consumed.

        Returns:
            True if the code matches the latest live code for the address.
        """
        email = normalize_email(email)
        stored = await self.code_store.get_latest_unconsumed(email)
        if stored is None:
            logger.info("Email code verification failed: no active code", email=email)
            return False

        now = datetime.now(timezone.utc)
        if stored.is_expired(now):
            await self.code_store.mark_consumed(stored.id, now)
            await self.session.commit()
            logger.info("Email code verification failed: expired", email=email)
            return False

        if not digests_match(stored.code_hash, hash_code(code.strip())):
            await self.code_store.increment_attempts(stored.id)
            await self.session.commit()
            logger.info(
                "Email code verification failed: mismatch",
                email=email,
                attempt_count=stored.attempt_count + 1,
            )
            return False

        if consume:
            consumed = await self.code_store.mark_consumed(stored.id, now)
            await self.session.commit()
            if not consumed:
                logger.info("Email code verification failed: already consumed", email=email)
                return False

        logger.info("Email code verified", email=email, consumed=consume)
        return True
