"""Session cookie helpers.

The session is a signed JWT in an HTTP-only cookie. Cross-site OAuth
clients need ``SameSite=None``, which browsers only accept with
``Secure``, so production uses that pair and development uses ``Lax``.
"""

from fastapi import Response

from authgate.core.config import get_settings
from authgate.infrastructure.auth import jwt_service


def set_session_cookie(response: Response, user_id: str, email: str) -> str:
    """Mint a session token and attach it to the response.

    Returns:
        The encoded session token.
    """
    settings = get_settings()
    token = jwt_service.create_session_token(user_id, email)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
        path="/",
    )
    return token


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
    )
