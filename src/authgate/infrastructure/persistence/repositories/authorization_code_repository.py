"""Repository for OAuth authorization codes.

Redemption is a row lock followed by a conditional delete so a code can
be exchanged at most once, even under concurrent requests.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.domain.entities.oauth_token import AuthorizationCode
from authgate.infrastructure.persistence.models.oauth_token import AuthorizationCodeModel


class AuthorizationCodeRepository:
    """Repository for authorization code database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _to_entity(self, model: AuthorizationCodeModel) -> AuthorizationCode:
        """Convert infrastructure model to domain entity."""
        expires = model.expires
        if expires and expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)

        created_at = model.created_at
        if created_at and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return AuthorizationCode(
            code=model.code,
            client_id=model.client_id,
            user_id=model.user_id,
            redirect_uri=model.redirect_uri,
            scopes=model.scopes.split(),
            expires=expires,
            code_challenge=model.code_challenge,
            code_challenge_method=model.code_challenge_method,
            created_at=created_at,
        )

    async def create(self, entity: AuthorizationCode) -> AuthorizationCode:
        """Store a new authorization code."""
        model = AuthorizationCodeModel(
            code=entity.code,
            client_id=entity.client_id,
            user_id=entity.user_id,
            redirect_uri=entity.redirect_uri,
            scopes=" ".join(entity.scopes),
            code_challenge=entity.code_challenge,
            code_challenge_method=entity.code_challenge_method,
            expires=entity.expires,
            created_at=entity.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_for_redemption(
        self,
        code: str,
        client_id: str,
        redirect_uri: str,
    ) -> AuthorizationCode | None:
        """Lock and return a live code matching client and redirect URI.

        Returns:
            The code if it exists, matches and is not expired, None otherwise.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            select(AuthorizationCodeModel)
            .where(
                AuthorizationCodeModel.code == code,
                AuthorizationCodeModel.client_id == client_id,
                AuthorizationCodeModel.redirect_uri == redirect_uri,
                AuthorizationCodeModel.expires > now,
            )
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def consume(self, code: str, client_id: str) -> bool:
        """Delete a code, reporting whether this call removed it.

        Returns:
            True only for the caller whose delete affected the row.
        """
        stmt = delete(AuthorizationCodeModel).where(
            AuthorizationCodeModel.code == code,
            AuthorizationCodeModel.client_id == client_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete_expired(self) -> int:
        """Delete all expired codes.

        Returns:
            Number of codes deleted.
        """
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            delete(AuthorizationCodeModel)
            .where(AuthorizationCodeModel.expires <= now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
