"""User repository for database operations."""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.domain.entities.user import User
from authgate.infrastructure.persistence.models.user import UserModel


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    def _to_entity(self, model: UserModel) -> User:
        """Convert infrastructure model to domain entity."""
        email_verified = model.email_verified
        if email_verified and email_verified.tzinfo is None:
            email_verified = email_verified.replace(tzinfo=timezone.utc)

        created_at = model.created_at
        if created_at and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return User(
            id=model.id,
            email=model.email,
            name=model.name,
            organization=model.organization,
            image=model.image,
            email_verified=email_verified,
            onboarding_completed=model.onboarding_completed,
            created_at=created_at,
        )

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User entity to create.

        Returns:
            The stored user.
        """
        model = UserModel(
            id=user.id,
            email=user.email,
            name=user.name,
            organization=user.organization,
            image=user.image,
            email_verified=user.email_verified,
            onboarding_completed=user.onboarding_completed,
            created_at=user.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by ID."""
        result = await self._session.execute(select(UserModel).where(UserModel.id == user_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email (case-insensitive, trimmed)."""
        normalized = email.lower().strip()
        result = await self._session.execute(
            select(UserModel).where(UserModel.email == normalized)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def email_exists(self, email: str, exclude_user_id: str | None = None) -> bool:
        """Check if an email is held by a user other than ``exclude_user_id``."""
        normalized = email.lower().strip()
        query = select(UserModel.id).where(UserModel.email == normalized)
        if exclude_user_id:
            query = query.where(UserModel.id != exclude_user_id)
        result = await self._session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def mark_email_verified(self, user_id: str, verified_at: datetime) -> None:
        """Stamp the user's email as verified."""
        await self._session.execute(
            update(UserModel).where(UserModel.id == user_id).values(email_verified=verified_at)
        )

    async def complete_onboarding(self, user_id: str, name: str, organization: str) -> bool:
        """Save onboarding details.

        Returns:
            True if the user was updated, False if not found.
        """
        result = await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(name=name, organization=organization, onboarding_completed=True)
        )
        return result.rowcount > 0

    async def update_email(self, user_id: str, new_email: str, verified_at: datetime) -> bool:
        """Swap the user's email and mark it verified.

        Raises:
            sqlalchemy.exc.IntegrityError: On flush if the address is already taken.
        """
        result = await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(email=new_email.lower().strip(), email_verified=verified_at)
        )
        await self._session.flush()
        return result.rowcount > 0

    async def update_profile(self, user_id: str, **values: str | None) -> User | None:
        """Update editable profile fields (``name``, ``organization``, ``image``).

        Returns:
            The updated user, or None if not found.
        """
        result = await self._session.execute(
            update(UserModel).where(UserModel.id == user_id).values(**values)
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(user_id)
