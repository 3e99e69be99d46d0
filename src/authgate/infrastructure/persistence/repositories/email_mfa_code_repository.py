"""Repository for email sign-in codes.

Provides the database-backed implementation of the email code store.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.domain.entities.email_mfa_code import EmailMfaCode
from authgate.infrastructure.persistence.models.email_mfa_code import EmailMfaCodeModel
from authgate.infrastructure.persistence.stores.base import EmailMfaCodeStore


class EmailMfaCodeRepository(EmailMfaCodeStore):
    """Repository for email code database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    def _to_model(self, entity: EmailMfaCode) -> EmailMfaCodeModel:
        """Convert domain entity to infrastructure model."""
        return EmailMfaCodeModel(
            id=entity.id,
            email=entity.email,
            code_hash=entity.code_hash,
            expires_at=entity.expires_at,
            consumed_at=entity.consumed_at,
            attempt_count=entity.attempt_count,
            created_at=entity.created_at,
        )

    def _to_entity(self, model: EmailMfaCodeModel) -> EmailMfaCode:
        """Convert infrastructure model to domain entity."""
        expires_at = model.expires_at
        if expires_at and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        created_at = model.created_at
        if created_at and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        consumed_at = model.consumed_at
        if consumed_at and consumed_at.tzinfo is None:
            consumed_at = consumed_at.replace(tzinfo=timezone.utc)

        return EmailMfaCode(
            id=model.id,
            email=model.email,
            code_hash=model.code_hash,
            expires_at=expires_at,
            consumed_at=consumed_at,
            attempt_count=model.attempt_count,
            created_at=created_at,
        )

    async def replace_code(self, code: EmailMfaCode) -> EmailMfaCode:
        """Store a new code, invalidating the email's outstanding ones.

        Runs inside the caller's transaction; the caller commits.
        """
        now = datetime.now(timezone.utc)
        await self._session.execute(
            delete(EmailMfaCodeModel)
            .where(EmailMfaCodeModel.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(
            delete(EmailMfaCodeModel).where(
                EmailMfaCodeModel.email == code.email,
                EmailMfaCodeModel.consumed_at == None,  # noqa: E711
            )
        )
        model = self._to_model(code)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_latest_unconsumed(self, email: str) -> EmailMfaCode | None:
        stmt = (
            select(EmailMfaCodeModel)
            .where(
                EmailMfaCodeModel.email == email,
                EmailMfaCodeModel.consumed_at == None,  # noqa: E711
            )
            .order_by(EmailMfaCodeModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def mark_consumed(self, code_id: str, consumed_at: datetime) -> bool:
        result = await self._session.execute(
            update(EmailMfaCodeModel)
            .where(
                EmailMfaCodeModel.id == code_id,
                EmailMfaCodeModel.consumed_at == None,  # noqa: E711
            )
            .values(consumed_at=consumed_at)
        )
        return result.rowcount == 1

    async def increment_attempts(self, code_id: str) -> None:
        await self._session.execute(
            update(EmailMfaCodeModel)
            .where(EmailMfaCodeModel.id == code_id)
            .values(attempt_count=EmailMfaCodeModel.attempt_count + 1)
        )
