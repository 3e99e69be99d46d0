"""Repository for registered OAuth clients."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.config import OAuthClientConfig
from authgate.domain.entities.oauth_client import OAuthClient
from authgate.infrastructure.auth.token_codec import hash_code
from authgate.infrastructure.persistence.models.oauth_client import OAuthClientModel


class OAuthClientRepository:
    """Repository for OAuth client database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _to_entity(self, model: OAuthClientModel) -> OAuthClient:
        """Convert infrastructure model to domain entity."""
        created_at = model.created_at
        if created_at and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return OAuthClient(
            id=model.id,
            name=model.name,
            client_secret_hash=model.client_secret_hash or "",
            redirect_uris=list(model.redirect_uris or []),
            allowed_origin=model.allowed_origin,
            scopes=model.scopes.split(),
            is_active=model.is_active,
            created_at=created_at,
        )

    async def get_by_id(self, client_id: str) -> OAuthClient | None:
        """Get a client by ID, active or not."""
        result = await self._session.execute(
            select(OAuthClientModel).where(OAuthClientModel.id == client_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_active(self, client_id: str) -> OAuthClient | None:
        """Get an active client by ID."""
        result = await self._session.execute(
            select(OAuthClientModel).where(
                OAuthClientModel.id == client_id,
                OAuthClientModel.is_active.is_(True),
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, client: OAuthClient) -> OAuthClient:
        """Store a new client."""
        model = OAuthClientModel(
            id=client.id,
            name=client.name,
            client_secret_hash=client.client_secret_hash,
            redirect_uris=list(client.redirect_uris),
            allowed_origin=client.allowed_origin,
            scopes=" ".join(client.scopes),
            is_active=client.is_active,
            created_at=client.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def upsert_from_config(self, config: OAuthClientConfig) -> OAuthClient:
        """Insert or update a client declared in configuration.

        The configured plaintext secret is hashed before storage.
        """
        secret_hash = hash_code(config.client_secret) if config.client_secret else ""
        result = await self._session.execute(
            select(OAuthClientModel).where(OAuthClientModel.id == config.id)
        )
        model = result.scalar_one_or_none()

        if model is None:
            model = OAuthClientModel(id=config.id, created_at=datetime.now(timezone.utc))
            self._session.add(model)

        model.name = config.name
        model.client_secret_hash = secret_hash
        model.redirect_uris = list(config.redirect_uris)
        model.allowed_origin = config.allowed_origin
        model.scopes = config.scopes
        model.is_active = config.is_active

        await self._session.flush()
        return self._to_entity(model)

    async def list_active_origins(self) -> set[str]:
        """Get the allowed origins of all active clients."""
        result = await self._session.execute(
            select(OAuthClientModel.allowed_origin).where(OAuthClientModel.is_active.is_(True))
        )
        return {origin for origin in result.scalars().all() if origin}
