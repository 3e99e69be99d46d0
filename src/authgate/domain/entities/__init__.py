"""Domain entities for AuthGate.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from authgate.domain.entities.email_change_request import (
    EmailChangeError,
    EmailChangeRequest,
    EmailChangeTarget,
    VerifyResult,
)
from authgate.domain.entities.email_mfa_code import EmailMfaCode
from authgate.domain.entities.oauth_client import OAuthClient
from authgate.domain.entities.oauth_token import (
    AccessToken,
    AuthorizationCode,
    RefreshToken,
    TokenPair,
)
from authgate.domain.entities.user import User

__all__ = [
    "AccessToken",
    "AuthorizationCode",
    "EmailChangeError",
    "EmailChangeRequest",
    "EmailChangeTarget",
    "EmailMfaCode",
    "OAuthClient",
    "RefreshToken",
    "TokenPair",
    "User",
    "VerifyResult",
]
