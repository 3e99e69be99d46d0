"""Authorization state envelope carried through the login redirect.

The state is base64url(JSON) of ``{csrfToken, clientId?, returnTo?, timestamp}``.
It is not signed: the envelope is only used for routing after login and
never for an authorization decision.
"""

import binascii
import json
import time
from typing import Any

from authgate.infrastructure.auth.token_codec import base64url_decode, base64url_encode


class InvalidStateError(Exception):
    """Raised when a state parameter cannot be decoded or lacks a CSRF token."""

    pass


def encode_state(data: dict[str, Any]) -> str:
    """Encode a JSON-serialisable mapping as a base64url state string."""
    payload = json.dumps(data, separators=(",", ":"))
    return base64url_encode(payload.encode("utf-8"))


def decode_state(state: str) -> dict[str, Any]:
    """Decode a base64url state string back into a mapping.

    Raises:
        InvalidStateError: If the value is not base64url JSON describing an object.
    """
    try:
        decoded = json.loads(base64url_decode(state).decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        raise InvalidStateError("Invalid state parameter") from e

    if not isinstance(decoded, dict):
        raise InvalidStateError("Invalid state parameter")
    return decoded


def generate_authorization_state(
    csrf_token: str,
    client_id: str | None = None,
    return_to: str | None = None,
) -> str:
    """Mint a state envelope for the redirect to the login page.

    Args:
        csrf_token: Fresh random CSRF token.
        client_id: Optional client the flow belongs to.
        return_to: Optional URL to resume after login.

    Returns:
        Encoded state string.
    """
    data: dict[str, Any] = {"csrfToken": csrf_token}
    if client_id:
        data["clientId"] = client_id
    if return_to:
        data["returnTo"] = return_to
    data["timestamp"] = int(time.time() * 1000)
    return encode_state(data)


def validate_authorization_state(state: str) -> dict[str, Any]:
    """Decode a returned state and require its CSRF token.

    Raises:
        InvalidStateError: If decoding fails or ``csrfToken`` is missing.
    """
    decoded = decode_state(state)
    if not decoded.get("csrfToken"):
        raise InvalidStateError("Invalid state parameter")
    return decoded
