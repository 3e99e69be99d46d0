"""OAuth 2.0 authorization-code and refresh-token engine.

Issues authorization codes, redeems them exactly once with optional PKCE,
rotates refresh tokens and resolves access tokens to userinfo claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.config import Settings, get_settings
from authgate.core.logging import get_logger
from authgate.domain.entities.oauth_client import OAuthClient
from authgate.domain.entities.oauth_token import (
    AccessToken,
    AuthorizationCode,
    RefreshToken,
    TokenPair,
)
from authgate.domain.services.client_registry import ClientRegistry
from authgate.infrastructure.auth.token_codec import (
    PKCE_METHODS,
    digests_match,
    generate_secure_token,
    pkce_challenge,
)
from authgate.infrastructure.persistence.repositories.authorization_code_repository import (
    AuthorizationCodeRepository,
)
from authgate.infrastructure.persistence.repositories.oauth_token_repository import (
    OAuthTokenRepository,
)
from authgate.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class OAuthError(Exception):
    """Protocol error rendered as ``{error, error_description}``.

    Attributes:
        error: OAuth error code, e.g. ``invalid_grant``.
        description: Human readable description.
        status_code: HTTP status to respond with.
    """

    def __init__(self, error: str, description: str, status_code: int = 400) -> None:
        super().__init__(description)
        self.error = error
        self.description = description
        self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class OAuthService:
    """Service for the authorization code and token lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        client_registry: ClientRegistry,
        code_repo: AuthorizationCodeRepository,
        token_repo: OAuthTokenRepository,
        user_repo: UserRepository,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the OAuth service.

        Args:
            session: SQLAlchemy async session.
            client_registry: Client lookup and validation.
            code_repo: Repository for authorization codes.
            token_repo: Repository for access/refresh tokens.
            user_repo: Repository for users.
            settings: Application settings. Defaults to the cached settings.
        """
        self.session = session
        self.client_registry = client_registry
        self.code_repo = code_repo
        self.token_repo = token_repo
        self.user_repo = user_repo
        self.settings = settings or get_settings()

    async def authenticate_client(
        self,
        client_id: str,
        client_secret: str | None,
    ) -> OAuthClient:
        """Authenticate the client calling the token endpoint.

        Raises:
            OAuthError: ``invalid_client`` (401) on any failure, including a
                confidential client that presented no secret.
        """
        client = await self.client_registry.validate_client(client_id, client_secret)
        if client is None or (client.is_confidential and not client_secret):
            logger.info("Token endpoint client authentication failed", client_id=client_id)
            raise OAuthError("invalid_client", "Invalid client credentials", 401)
        return client

    async def create_authorization_code(
        self,
        client: OAuthClient,
        user_id: str,
        redirect_uri: str,
        scopes: list[str],
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
    ) -> str:
        """Issue a single-use authorization code.

        A challenge without a method is treated as ``plain``.

        Raises:
            OAuthError: ``invalid_request`` for an unsupported challenge method.
        """
        if code_challenge and not code_challenge_method:
            code_challenge_method = "plain"
        if code_challenge_method and code_challenge_method not in PKCE_METHODS:
            raise OAuthError("invalid_request", "Unsupported code_challenge_method")

        now = datetime.now(timezone.utc)
        code = AuthorizationCode(
            code=generate_secure_token(),
            client_id=client.id,
            user_id=user_id,
            redirect_uri=redirect_uri,
            scopes=scopes,
            expires=now + timedelta(minutes=self.settings.authorization_code_expire_minutes),
            code_challenge=code_challenge or None,
            code_challenge_method=code_challenge_method if code_challenge else None,
            created_at=now,
        )
        await self.code_repo.delete_expired()
        await self.code_repo.create(code)
        await self.session.commit()

        logger.info(
            "Authorization code issued",
            client_id=client.id,
            user_id=user_id,
            pkce=code.code_challenge is not None,
        )
        return code.code

    def _mint_pair(self, client_id: str, user_id: str, scopes: list[str]) -> TokenPair:
        now = datetime.now(timezone.utc)
        access = AccessToken(
            token=generate_secure_token(),
            client_id=client_id,
            user_id=user_id,
            scopes=scopes,
            expires=now + timedelta(seconds=self.settings.access_token_expire_seconds),
            created_at=now,
        )
        refresh = RefreshToken(
            token=generate_secure_token(),
            access_token=access.token,
            client_id=client_id,
            user_id=user_id,
            expires=now + timedelta(days=self.settings.refresh_token_expire_days),
            created_at=now,
        )
        return TokenPair(access_token=access, refresh_token=refresh)

    async def exchange_code(
        self,
        client: OAuthClient,
        code: str,
        redirect_uri: str,
        code_verifier: str | None = None,
    ) -> TokenPair:
        """Redeem an authorization code for a token pair.

        The code row is locked, PKCE is checked, then the row is deleted
        with a conditional delete; only the request whose delete removed
        the row receives tokens.

        Raises:
            OAuthError: ``invalid_grant`` for any unknown, expired, mismatched,
                replayed or PKCE-failing code.
        """
        auth_code = await self.code_repo.get_for_redemption(code, client.id, redirect_uri)
        if auth_code is None:
            await self.session.rollback()
            raise OAuthError("invalid_grant", "Invalid authorization code")

        if auth_code.code_challenge and auth_code.code_challenge_method:
            expected = (
                pkce_challenge(code_verifier, auth_code.code_challenge_method)
                if code_verifier
                else None
            )
            if expected is None or not digests_match(auth_code.code_challenge, expected):
                await self.session.rollback()
                logger.info("PKCE verification failed", client_id=client.id)
                raise OAuthError("invalid_grant", "Invalid authorization code")

        if not await self.code_repo.consume(auth_code.code, client.id):
            await self.session.rollback()
            raise OAuthError("invalid_grant", "Invalid authorization code")

        pair = self._mint_pair(client.id, auth_code.user_id, auth_code.scopes)
        await self.token_repo.create_pair(pair)
        await self.session.commit()

        logger.info("Authorization code redeemed", client_id=client.id, user_id=auth_code.user_id)
        return pair

    async def refresh(self, client: OAuthClient, refresh_token: str) -> TokenPair:
        """Rotate a refresh token into a new pair with the same scopes.

        Raises:
            OAuthError: ``invalid_grant`` if the token is unknown, expired,
                issued to another client, already rotated or orphaned.
        """
        stored = await self.token_repo.get_refresh_token(refresh_token, client.id)
        if stored is None:
            await self.session.rollback()
            raise OAuthError("invalid_grant", "Invalid refresh token")

        paired = await self.token_repo.get_paired_access_token(stored)
        if paired is None:
            await self.session.rollback()
            raise OAuthError("invalid_grant", "Invalid refresh token")

        if not await self.token_repo.revoke_pair(stored):
            await self.session.rollback()
            raise OAuthError("invalid_grant", "Invalid refresh token")

        pair = self._mint_pair(client.id, stored.user_id, paired.scopes)
        await self.token_repo.create_pair(pair)
        await self.session.commit()

        logger.info("Refresh token rotated", client_id=client.id, user_id=stored.user_id)
        return pair

    async def validate_access_token(self, token: str) -> AccessToken | None:
        """Resolve a bearer token, or None if unknown or expired."""
        if not token:
            return None
        return await self.token_repo.get_access_token(token)

    async def get_user_info(self, access_token: AccessToken) -> dict[str, Any]:
        """Build the claims visible to an access token's scopes.

        Raises:
            OAuthError: ``server_error`` (500) if the user no longer exists.
        """
        user = await self.user_repo.get_by_id(access_token.user_id)
        if user is None:
            logger.error("Userinfo requested for missing user", user_id=access_token.user_id)
            raise OAuthError("server_error", "User not found", 500)

        claims: dict[str, Any] = {"sub": user.id}
        if access_token.has_scope("profile"):
            claims["name"] = user.name
            claims["picture"] = user.image
        if access_token.has_scope("email"):
            claims["email"] = user.email
            claims["email_verified"] = user.email_verified is not None
        return claims
