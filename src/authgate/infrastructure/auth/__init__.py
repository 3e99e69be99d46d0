"""Authentication infrastructure components.

This module provides the opaque token codec, the authorization state
envelope and the JWT session service.
"""

from authgate.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
    jwt_service,
)
from authgate.infrastructure.auth.state_codec import (
    InvalidStateError,
    decode_state,
    encode_state,
    generate_authorization_state,
    validate_authorization_state,
)
from authgate.infrastructure.auth.token_codec import (
    digests_match,
    generate_numeric_code,
    generate_secure_token,
    hash_code,
    pkce_challenge,
)

__all__ = [
    "InvalidStateError",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenExpiredError",
    "decode_state",
    "digests_match",
    "encode_state",
    "generate_authorization_state",
    "generate_numeric_code",
    "generate_secure_token",
    "hash_code",
    "jwt_service",
    "pkce_challenge",
    "validate_authorization_state",
]
