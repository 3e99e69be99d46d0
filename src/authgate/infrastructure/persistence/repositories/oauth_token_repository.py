"""Repository for OAuth access and refresh tokens."""

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.domain.entities.oauth_token import AccessToken, RefreshToken, TokenPair
from authgate.infrastructure.persistence.models.oauth_token import (
    AccessTokenModel,
    RefreshTokenModel,
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OAuthTokenRepository:
    """Repository for access/refresh token pairs.

    A refresh token is only usable while the access token it was minted
    with still exists.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _access_to_entity(self, model: AccessTokenModel) -> AccessToken:
        return AccessToken(
            token=model.token,
            client_id=model.client_id,
            user_id=model.user_id,
            scopes=model.scopes.split(),
            expires=_as_utc(model.expires),
            created_at=_as_utc(model.created_at),
        )

    def _refresh_to_entity(self, model: RefreshTokenModel) -> RefreshToken:
        return RefreshToken(
            token=model.token,
            access_token=model.access_token,
            client_id=model.client_id,
            user_id=model.user_id,
            expires=_as_utc(model.expires),
            created_at=_as_utc(model.created_at),
        )

    async def create_pair(self, pair: TokenPair) -> TokenPair:
        """Store an access token and its refresh token.

        The access row is flushed first so the refresh row's foreign key resolves.
        """
        access = pair.access_token
        refresh = pair.refresh_token
        self._session.add(
            AccessTokenModel(
                token=access.token,
                client_id=access.client_id,
                user_id=access.user_id,
                scopes=" ".join(access.scopes),
                expires=access.expires,
                created_at=access.created_at,
            )
        )
        await self._session.flush()
        self._session.add(
            RefreshTokenModel(
                token=refresh.token,
                access_token=refresh.access_token,
                client_id=refresh.client_id,
                user_id=refresh.user_id,
                expires=refresh.expires,
                created_at=refresh.created_at,
            )
        )
        await self._session.flush()
        return pair

    async def get_access_token(self, token: str) -> AccessToken | None:
        """Get an unexpired access token."""
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            select(AccessTokenModel).where(
                AccessTokenModel.token == token,
                AccessTokenModel.expires > now,
            )
        )
        model = result.scalar_one_or_none()
        return self._access_to_entity(model) if model else None

    async def get_refresh_token(self, token: str, client_id: str) -> RefreshToken | None:
        """Lock and return an unexpired refresh token issued to ``client_id``."""
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            select(RefreshTokenModel)
            .where(
                RefreshTokenModel.token == token,
                RefreshTokenModel.client_id == client_id,
                RefreshTokenModel.expires > now,
            )
            .with_for_update()
        )
        model = result.scalar_one_or_none()
        return self._refresh_to_entity(model) if model else None

    async def get_paired_access_token(self, refresh: RefreshToken) -> AccessToken | None:
        """Get the access token row a refresh token was minted with, expired or not."""
        result = await self._session.execute(
            select(AccessTokenModel).where(AccessTokenModel.token == refresh.access_token)
        )
        model = result.scalar_one_or_none()
        return self._access_to_entity(model) if model else None

    async def revoke_pair(self, refresh: RefreshToken) -> bool:
        """Delete a refresh token and its access token.

        Returns:
            True only for the caller whose delete removed the refresh row.
        """
        result = await self._session.execute(
            delete(RefreshTokenModel).where(RefreshTokenModel.token == refresh.token)
        )
        if result.rowcount != 1:
            return False
        await self._session.execute(
            delete(AccessTokenModel).where(AccessTokenModel.token == refresh.access_token)
        )
        return True

    async def delete_expired(self) -> int:
        """Delete expired refresh tokens and access tokens no longer referenced."""
        now = datetime.now(timezone.utc)
        refresh_result = await self._session.execute(
            delete(RefreshTokenModel)
            .where(RefreshTokenModel.expires <= now)
            .execution_options(synchronize_session=False)
        )
        referenced = select(RefreshTokenModel.access_token)
        access_result = await self._session.execute(
            delete(AccessTokenModel)
            .where(
                AccessTokenModel.expires <= now,
                AccessTokenModel.token.not_in(referenced),
            )
            .execution_options(synchronize_session=False)
        )
        return refresh_result.rowcount + access_result.rowcount
