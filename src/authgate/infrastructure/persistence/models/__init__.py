"""SQLAlchemy models for AuthGate tables.

All models inherit from the Base class defined in database.py and are
created on application startup outside production.
"""

from authgate.infrastructure.persistence.models.email_change_request import (
    EmailChangeRequestModel,
)
from authgate.infrastructure.persistence.models.email_mfa_code import EmailMfaCodeModel
from authgate.infrastructure.persistence.models.oauth_client import OAuthClientModel
from authgate.infrastructure.persistence.models.oauth_token import (
    AccessTokenModel,
    AuthorizationCodeModel,
    RefreshTokenModel,
)
from authgate.infrastructure.persistence.models.user import UserModel

__all__ = [
    "AccessTokenModel",
    "AuthorizationCodeModel",
    "EmailChangeRequestModel",
    "EmailMfaCodeModel",
    "OAuthClientModel",
    "RefreshTokenModel",
    "UserModel",
]
