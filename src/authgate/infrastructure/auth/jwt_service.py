"""JWT session token service.

The browser session of a signed-in user is a signed JWT kept in an
HTTP-only cookie. It only identifies the user; onboarding status and
profile data are always re-read from the database.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from authgate.core.config import get_settings


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTService:
    """Service for creating and validating session tokens."""

    ALGORITHM = "HS256"
    ISSUER = "authgate"

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens. If not provided,
                        uses the configured secret key from settings.
        """
        self._secret_key = secret_key

    @property
    def secret_key(self) -> str:
        """Get the secret key for signing tokens."""
        if self._secret_key:
            return self._secret_key
        return get_settings().secret_key

    def create_session_token(
        self,
        user_id: str,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a session token for a signed-in user.

        Args:
            user_id: The user's unique identifier.
            email: The user's email address at sign-in time.
            expires_delta: Custom expiration time. Defaults to config value.

        Returns:
            Encoded JWT session token.
        """
        if expires_delta is None:
            expires_delta = timedelta(days=get_settings().session_max_age_days)

        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.ISSUER,
            "sub": user_id,
            "iat": now,
            "exp": now + expires_delta,
            "jti": str(uuid.uuid4()),
            "email": email,
            "type": "session",
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

    def validate_session_token(self, token: str) -> dict[str, Any]:
        """Validate that a token is a session token and decode it.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or not a session token.
        """
        payload = self.decode_token(token)
        if payload.get("type") != "session":
            raise InvalidTokenError("Not a session token")
        return payload


# Default JWT service instance
jwt_service = JWTService()
