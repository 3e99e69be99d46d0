"""Repository for email change requests.

A request is open while neither ``completed_at`` nor ``cancelled_at`` is
set. Cancelled rows are kept so they still count toward the rate limit.
"""

from datetime import datetime, timezone
from typing import NamedTuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.domain.entities.email_change_request import (
    EmailChangeRequest,
    EmailChangeTarget,
)
from authgate.infrastructure.persistence.models.email_change_request import (
    EmailChangeRequestModel,
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class VerificationProgress(NamedTuple):
    """Current verification state of a request."""

    old_verified: bool
    new_verified: bool
    completed: bool


def _is_open():
    return (
        EmailChangeRequestModel.completed_at == None,  # noqa: E711
        EmailChangeRequestModel.cancelled_at == None,  # noqa: E711
    )


class EmailChangeRepository:
    """Repository for email change request database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    def _to_model(self, entity: EmailChangeRequest) -> EmailChangeRequestModel:
        """Convert domain entity to infrastructure model."""
        return EmailChangeRequestModel(
            id=entity.id,
            user_id=entity.user_id,
            current_email=entity.current_email,
            new_email=entity.new_email,
            old_email_verified=entity.old_email_verified,
            new_email_verified=entity.new_email_verified,
            old_email_verified_at=entity.old_email_verified_at,
            new_email_verified_at=entity.new_email_verified_at,
            old_email_code_hash=entity.old_email_code_hash,
            new_email_code_hash=entity.new_email_code_hash,
            old_email_attempt_count=entity.old_email_attempt_count,
            new_email_attempt_count=entity.new_email_attempt_count,
            expires_at=entity.expires_at,
            created_at=entity.created_at,
            completed_at=entity.completed_at,
            cancelled_at=entity.cancelled_at,
        )

    def _to_entity(self, model: EmailChangeRequestModel) -> EmailChangeRequest:
        """Convert infrastructure model to domain entity."""
        return EmailChangeRequest(
            id=model.id,
            user_id=model.user_id,
            current_email=model.current_email,
            new_email=model.new_email,
            old_email_verified=model.old_email_verified,
            new_email_verified=model.new_email_verified,
            old_email_verified_at=_as_utc(model.old_email_verified_at),
            new_email_verified_at=_as_utc(model.new_email_verified_at),
            old_email_code_hash=model.old_email_code_hash,
            new_email_code_hash=model.new_email_code_hash,
            old_email_attempt_count=model.old_email_attempt_count,
            new_email_attempt_count=model.new_email_attempt_count,
            expires_at=_as_utc(model.expires_at),
            created_at=_as_utc(model.created_at),
            completed_at=_as_utc(model.completed_at),
            cancelled_at=_as_utc(model.cancelled_at),
        )

    async def create(self, entity: EmailChangeRequest) -> EmailChangeRequest:
        """Store a new email change request."""
        model = self._to_model(entity)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_open(self, request_id: str, user_id: str) -> EmailChangeRequest | None:
        """Get an open request owned by ``user_id``, expired or not."""
        result = await self._session.execute(
            select(EmailChangeRequestModel).where(
                EmailChangeRequestModel.id == request_id,
                EmailChangeRequestModel.user_id == user_id,
                *_is_open(),
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_pending_for_user(self, user_id: str) -> EmailChangeRequest | None:
        """Get the user's open, unexpired request, newest first."""
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            select(EmailChangeRequestModel)
            .where(
                EmailChangeRequestModel.user_id == user_id,
                EmailChangeRequestModel.expires_at > now,
                *_is_open(),
            )
            .order_by(EmailChangeRequestModel.created_at.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def count_created_since(self, user_id: str, since: datetime) -> int:
        """Count the user's requests created after ``since``, cancelled ones included."""
        result = await self._session.execute(
            select(func.count())
            .select_from(EmailChangeRequestModel)
            .where(
                EmailChangeRequestModel.user_id == user_id,
                EmailChangeRequestModel.created_at > since,
            )
        )
        return result.scalar_one()

    async def cancel_open_for_user(self, user_id: str, cancelled_at: datetime) -> int:
        """Cancel every open request of a user.

        Returns:
            Number of requests cancelled.
        """
        result = await self._session.execute(
            update(EmailChangeRequestModel)
            .where(EmailChangeRequestModel.user_id == user_id, *_is_open())
            .values(cancelled_at=cancelled_at)
        )
        return result.rowcount

    async def cancel(self, request_id: str, user_id: str, cancelled_at: datetime) -> bool:
        """Cancel one open request owned by ``user_id``."""
        result = await self._session.execute(
            update(EmailChangeRequestModel)
            .where(
                EmailChangeRequestModel.id == request_id,
                EmailChangeRequestModel.user_id == user_id,
                *_is_open(),
            )
            .values(cancelled_at=cancelled_at)
        )
        return result.rowcount > 0

    async def delete_expired(self) -> int:
        """Delete expired requests.

        Returns:
            Number of requests deleted.
        """
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            delete(EmailChangeRequestModel)
            .where(EmailChangeRequestModel.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def mark_verified(
        self,
        request_id: str,
        target: EmailChangeTarget,
        verified_at: datetime,
    ) -> None:
        """Flip one side of a request to verified."""
        if target is EmailChangeTarget.OLD:
            values = {"old_email_verified": True, "old_email_verified_at": verified_at}
        else:
            values = {"new_email_verified": True, "new_email_verified_at": verified_at}
        await self._session.execute(
            update(EmailChangeRequestModel)
            .where(EmailChangeRequestModel.id == request_id)
            .values(**values)
        )

    async def increment_attempts(self, request_id: str, target: EmailChangeTarget) -> None:
        """Record a failed attempt against one side's code."""
        column = (
            EmailChangeRequestModel.old_email_attempt_count
            if target is EmailChangeTarget.OLD
            else EmailChangeRequestModel.new_email_attempt_count
        )
        await self._session.execute(
            update(EmailChangeRequestModel)
            .where(EmailChangeRequestModel.id == request_id)
            .values({column: column + 1})
        )

    async def reset_code(
        self,
        request_id: str,
        target: EmailChangeTarget,
        code_hash: str,
    ) -> None:
        """Replace one side's code and reset its attempt counter."""
        if target is EmailChangeTarget.OLD:
            values = {"old_email_code_hash": code_hash, "old_email_attempt_count": 0}
        else:
            values = {"new_email_code_hash": code_hash, "new_email_attempt_count": 0}
        await self._session.execute(
            update(EmailChangeRequestModel)
            .where(EmailChangeRequestModel.id == request_id)
            .values(**values)
        )

    async def mark_completed(self, request_id: str, completed_at: datetime) -> bool:
        """Stamp an open request as completed.

        Returns:
            True only if this call closed the request.
        """
        result = await self._session.execute(
            update(EmailChangeRequestModel)
            .where(EmailChangeRequestModel.id == request_id, *_is_open())
            .values(completed_at=completed_at)
        )
        return result.rowcount == 1

    async def get_progress(self, request_id: str) -> VerificationProgress | None:
        """Read both verification flags and completion straight from the database.

        Selects columns rather than the mapped row so values committed by a
        concurrent transaction are seen even when the row is already loaded.
        """
        result = await self._session.execute(
            select(
                EmailChangeRequestModel.old_email_verified,
                EmailChangeRequestModel.new_email_verified,
                EmailChangeRequestModel.completed_at,
            ).where(EmailChangeRequestModel.id == request_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return VerificationProgress(
            old_verified=bool(row.old_email_verified),
            new_verified=bool(row.new_email_verified),
            completed=row.completed_at is not None,
        )
