"""Repositories for AuthGate persistence."""

from authgate.infrastructure.persistence.repositories.authorization_code_repository import (
    AuthorizationCodeRepository,
)
from authgate.infrastructure.persistence.repositories.email_change_repository import (
    EmailChangeRepository,
)
from authgate.infrastructure.persistence.repositories.email_mfa_code_repository import (
    EmailMfaCodeRepository,
)
from authgate.infrastructure.persistence.repositories.oauth_client_repository import (
    OAuthClientRepository,
)
from authgate.infrastructure.persistence.repositories.oauth_token_repository import (
    OAuthTokenRepository,
)
from authgate.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = [
    "AuthorizationCodeRepository",
    "EmailChangeRepository",
    "EmailMfaCodeRepository",
    "OAuthClientRepository",
    "OAuthTokenRepository",
    "UserRepository",
]
