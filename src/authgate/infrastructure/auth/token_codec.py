"""Token codec for opaque OAuth credentials and one-time codes.

Authorization codes, access tokens, refresh tokens and client credentials
are random URL-safe strings used directly as primary keys. Numeric email
codes are never stored in cleartext: only their SHA-256 digest is kept.
"""

import base64
import hashlib
import hmac
import secrets

NUMERIC_CODE_MIN = 100000
NUMERIC_CODE_MAX = 999999

PKCE_METHODS = ("S256", "plain")


def base64url_encode(data: bytes) -> str:
    """Encode bytes to a base64url string without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(data: str) -> bytes:
    """Decode a base64url string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def generate_secure_token(byte_length: int = 32) -> str:
    """Generate a cryptographically random opaque token.

    Args:
        byte_length: Number of random bytes before encoding.

    Returns:
        URL-safe base64 string without padding.
    """
    return base64url_encode(secrets.token_bytes(byte_length))


def generate_numeric_code() -> str:
    """Generate a uniformly distributed 6-digit code in [100000, 999999]."""
    span = NUMERIC_CODE_MAX - NUMERIC_CODE_MIN + 1
    return str(NUMERIC_CODE_MIN + secrets.randbelow(span))


def hash_code(code: str) -> str:
    """Hash a verification code for at-rest storage.

    Returns:
        SHA-256 hex digest of the code.
    """
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def digests_match(expected: str, actual: str) -> bool:
    """Compare two digests or secrets in constant time."""
    return hmac.compare_digest(expected.encode("utf-8"), actual.encode("utf-8"))


def pkce_challenge(code_verifier: str, method: str) -> str | None:
    """Derive the PKCE code challenge for a verifier.

    Args:
        code_verifier: The client-held verifier.
        method: ``S256`` or ``plain``.

    Returns:
        The challenge string, or None for an unsupported method.
    """
    if method == "S256":
        return base64url_encode(hashlib.sha256(code_verifier.encode("utf-8")).digest())
    if method == "plain":
        return code_verifier
    return None
