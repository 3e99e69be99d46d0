"""Domain services for AuthGate.

Services contain the business logic of the OAuth engine, email sign-in
codes and the email change workflow.
"""

from authgate.domain.services.client_registry import ClientRegistry
from authgate.domain.services.email_change_service import (
    EmailChangeDeliveryError,
    EmailChangeResendError,
    EmailChangeService,
    is_valid_email,
)
from authgate.domain.services.email_verification_service import (
    EmailVerificationService,
    normalize_email,
)
from authgate.domain.services.oauth_service import OAuthError, OAuthService

__all__ = [
    "ClientRegistry",
    "EmailChangeDeliveryError",
    "EmailChangeResendError",
    "EmailChangeService",
    "EmailVerificationService",
    "OAuthError",
    "OAuthService",
    "is_valid_email",
    "normalize_email",
]
