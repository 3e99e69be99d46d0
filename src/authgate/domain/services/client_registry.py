"""Registry of OAuth clients.

Validates client credentials, redirect URIs and requested scopes.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.logging import get_logger
from authgate.domain.entities.oauth_client import OAuthClient
from authgate.infrastructure.auth.token_codec import (
    digests_match,
    generate_secure_token,
    hash_code,
)
from authgate.infrastructure.persistence.repositories.oauth_client_repository import (
    OAuthClientRepository,
)

logger = get_logger(__name__)

CLIENT_ID_BYTES = 16
CLIENT_SECRET_BYTES = 32


class ClientRegistry:
    """Service for looking up and registering OAuth clients."""

    def __init__(self, session: AsyncSession, client_repo: OAuthClientRepository) -> None:
        """Initialize the registry.

        Args:
            session: SQLAlchemy async session.
            client_repo: Repository for OAuth client operations.
        """
        self.session = session
        self.client_repo = client_repo

    async def validate_client(
        self,
        client_id: str,
        client_secret: str | None = None,
    ) -> OAuthClient | None:
        """Look up an active client and check its secret when one is supplied.

        Args:
            client_id: The presented client identifier.
            client_secret: The presented secret, if any.

        Returns:
            The client, or None if it is unknown, inactive or the secret is wrong.
        """
        if not client_id:
            return None

        client = await self.client_repo.get_active(client_id)
        if client is None:
            return None

        if client_secret is not None:
            if not client.is_confidential:
                logger.info("Secret presented for public client", client_id=client_id)
                return None
            if not digests_match(client.client_secret_hash, hash_code(client_secret)):
                logger.info("Client secret mismatch", client_id=client_id)
                return None

        return client

    @staticmethod
    def validate_redirect_uri(client: OAuthClient, redirect_uri: str) -> bool:
        """Check that the redirect URI is registered verbatim for the client."""
        return redirect_uri in client.redirect_uris

    @staticmethod
    def validate_scopes(client: OAuthClient, requested_scopes: list[str]) -> bool:
        """Check that every requested scope is granted to the client."""
        return all(scope in client.scopes for scope in requested_scopes)

    async def register_client(
        self,
        name: str,
        redirect_uris: list[str],
        allowed_origin: str,
        scopes: list[str] | None = None,
    ) -> tuple[OAuthClient, str]:
        """Register a confidential client with generated credentials.

        Returns:
            Tuple of (client, plaintext secret). The secret is not retrievable later.
        """
        client_secret = generate_secure_token(CLIENT_SECRET_BYTES)
        client = OAuthClient(
            id=generate_secure_token(CLIENT_ID_BYTES),
            name=name,
            client_secret_hash=hash_code(client_secret),
            redirect_uris=list(redirect_uris),
            allowed_origin=allowed_origin,
            scopes=scopes or ["openid", "profile", "email"],
        )
        client = await self.client_repo.create(client)
        await self.session.commit()

        logger.info("OAuth client registered", client_id=client.id, name=name)
        return client, client_secret

    async def allowed_origins(self) -> set[str]:
        """Get the browser origins of all active clients."""
        return await self.client_repo.list_active_origins()
