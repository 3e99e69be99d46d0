"""CORS headers for the browser-callable OAuth endpoints.

Only the token and userinfo endpoints are called cross-origin by client
apps, so their headers are computed per request instead of through a
global middleware.
"""

from fastapi import Request

from authgate.core.config import get_settings
from authgate.domain.services.client_registry import ClientRegistry

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"


async def oauth_cors_headers(request: Request, client_registry: ClientRegistry) -> dict[str, str]:
    """Build the CORS headers for a token or userinfo response.

    Outside production any origin is allowed. In production the request
    origin is reflected when it belongs to an active client, otherwise the
    configured ``oauth_cors_origin`` is used.
    """
    settings = get_settings()
    allow_origin = "*"
    if settings.is_production:
        origin = request.headers.get("origin")
        if origin and origin in await client_registry.allowed_origins():
            allow_origin = origin
        else:
            allow_origin = settings.oauth_cors_origin

    headers = {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }
    if allow_origin != "*":
        headers["Vary"] = "Origin"
    return headers


def redirect_cors_headers(request: Request) -> dict[str, str]:
    """Reflect the request origin with credentials on login/onboarding redirects."""
    origin = request.headers.get("origin")
    if not origin:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
    }
