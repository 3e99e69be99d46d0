"""OAuth 2.0 authorization server routes.

Provides the authorize, token, userinfo and discovery endpoints of the
authorization-code flow with PKCE and refresh-token rotation.
"""

import base64
import binascii
import uuid
from typing import Annotated
from urllib.parse import unquote, urlencode, urlsplit, urlunsplit

from fastapi import APIRouter, Depends, Form, Header, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from authgate.core.config import get_settings
from authgate.core.logging import get_logger
from authgate.domain.entities.user import User
from authgate.domain.services import ClientRegistry, OAuthError, OAuthService
from authgate.infrastructure.api.dependencies import (
    OptionalUser,
    get_client_registry,
    get_oauth_service,
)
from authgate.infrastructure.api.middleware.cors import (
    oauth_cors_headers,
    redirect_cors_headers,
)
from authgate.infrastructure.auth import (
    InvalidStateError,
    generate_authorization_state,
    validate_authorization_state,
)

logger = get_logger(__name__)

router = APIRouter()

Registry = Annotated[ClientRegistry, Depends(get_client_registry)]
Service = Annotated[OAuthService, Depends(get_oauth_service)]


def _with_query(url: str, params: dict[str, str]) -> str:
    """Append query parameters to a URL that may already carry some."""
    parts = urlsplit(url)
    query = f"{parts.query}&{urlencode(params)}" if parts.query else urlencode(params)
    return urlunsplit(parts._replace(query=query))


def _error_redirect(
    redirect_uri: str,
    error: str,
    description: str,
    state: str | None = None,
) -> RedirectResponse:
    params = {"error": error, "error_description": description}
    if state:
        params["state"] = state
    return RedirectResponse(_with_query(redirect_uri, params), status_code=status.HTTP_302_FOUND)


def _json_error(
    error: str,
    description: str,
    status_code: int = 400,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "error_description": description},
        headers=headers,
    )


def _external_callback_url(request: Request) -> str:
    """Rebuild the current request URL on the external base URL."""
    settings = get_settings()
    url = f"{settings.external_url}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


@router.get("/oauth/authorize")
async def authorize(
    request: Request,
    user: OptionalUser,
    client_registry: Registry,
    oauth_service: Service,
    response_type: str | None = None,
    client_id: str | None = None,
    redirect_uri: str | None = None,
    scope: str | None = None,
    state: str | None = None,
    code_challenge: str | None = None,
    code_challenge_method: str | None = None,
):
    """Authorization endpoint.

    Errors are returned as JSON until the redirect URI has been validated
    against the client; afterwards they are redirected to it.
    """
    if not response_type or not client_id or not redirect_uri:
        return _json_error("invalid_request", "Missing required parameters")

    if response_type != "code":
        return _json_error(
            "unsupported_response_type", "Only authorization code flow is supported"
        )

    safe_redirect: str | None = None
    try:
        client = await client_registry.validate_client(client_id)
        if client is None:
            logger.info("Authorize rejected: unknown client", client_id=client_id)
            return _json_error("invalid_client", "Invalid client_id")

        if not client_registry.validate_redirect_uri(client, redirect_uri):
            logger.warning(
                "Authorize rejected: unregistered redirect_uri",
                client_id=client_id,
                redirect_uri=redirect_uri,
            )
            return _json_error("invalid_request", "Invalid redirect_uri")

        safe_redirect = redirect_uri

        requested_scopes = (scope or get_settings().default_scope).split()
        if not client_registry.validate_scopes(client, requested_scopes):
            return _error_redirect(safe_redirect, "invalid_scope", "Invalid scope requested", state)

        if user is None:
            return _redirect_to_login(request, client_id, redirect_uri, state)

        if not user.has_completed_onboarding:
            return _redirect_to_onboarding(request)

        if state:
            try:
                validate_authorization_state(state)
            except InvalidStateError:
                logger.info("Authorize rejected: invalid state", client_id=client_id)
                return _error_redirect(safe_redirect, "invalid_request", "Invalid state parameter")

        try:
            code = await oauth_service.create_authorization_code(
                client=client,
                user_id=user.id,
                redirect_uri=redirect_uri,
                scopes=requested_scopes,
                code_challenge=code_challenge,
                code_challenge_method=code_challenge_method,
            )
        except OAuthError as e:
            return _error_redirect(safe_redirect, e.error, e.description, state)

        params = {"code": code}
        if state:
            params["state"] = state
        return RedirectResponse(
            _with_query(safe_redirect, params), status_code=status.HTTP_302_FOUND
        )
    except Exception as e:
        logger.error(
            "OAuth authorization error",
            client_id=client_id,
            error=str(e),
            exc_type=type(e).__name__,
        )
        if safe_redirect:
            return _error_redirect(safe_redirect, "server_error", "Internal server error", state)
        return _json_error("server_error", "Internal server error", 500)


def _redirect_to_login(
    request: Request,
    client_id: str,
    redirect_uri: str,
    state: str | None,
) -> RedirectResponse:
    settings = get_settings()
    login_state = state or generate_authorization_state(
        str(uuid.uuid4()), client_id, redirect_uri
    )
    query = urlencode({"callbackUrl": _external_callback_url(request), "state": login_state})
    return RedirectResponse(
        f"{settings.external_url}/login?{query}",
        status_code=status.HTTP_302_FOUND,
        headers=redirect_cors_headers(request),
    )


def _redirect_to_onboarding(request: Request) -> RedirectResponse:
    settings = get_settings()
    query = urlencode({"callbackUrl": _external_callback_url(request)})
    return RedirectResponse(
        f"{settings.external_url}/onboarding?{query}",
        status_code=status.HTTP_302_FOUND,
        headers=redirect_cors_headers(request),
    )


def _basic_credentials(authorization: str | None) -> tuple[str, str] | None:
    """Decode ``client_secret_basic`` credentials from an Authorization header."""
    if not authorization:
        return None
    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    client_id, sep, client_secret = decoded.partition(":")
    if not sep:
        return None
    return unquote(client_id), unquote(client_secret)


@router.options("/oauth/token")
async def token_preflight(request: Request, client_registry: Registry):
    """CORS preflight for the token endpoint."""
    headers = await oauth_cors_headers(request, client_registry)
    return JSONResponse(content={}, headers=headers)


@router.post("/oauth/token")
async def token(
    request: Request,
    client_registry: Registry,
    oauth_service: Service,
    grant_type: Annotated[str | None, Form()] = None,
    client_id: Annotated[str | None, Form()] = None,
    client_secret: Annotated[str | None, Form()] = None,
    code: Annotated[str | None, Form()] = None,
    redirect_uri: Annotated[str | None, Form()] = None,
    code_verifier: Annotated[str | None, Form()] = None,
    refresh_token: Annotated[str | None, Form()] = None,
    authorization: Annotated[str | None, Header()] = None,
):
    """Token endpoint for the authorization_code and refresh_token grants."""
    headers = await oauth_cors_headers(request, client_registry)
    headers["Cache-Control"] = "no-store"
    headers["Pragma"] = "no-cache"

    basic = _basic_credentials(authorization)
    if basic is not None:
        client_id, client_secret = basic

    if not grant_type or not client_id:
        return _json_error("invalid_request", "Missing required parameters", headers=headers)

    try:
        client = await oauth_service.authenticate_client(client_id, client_secret or None)

        if grant_type == "authorization_code":
            if not code or not redirect_uri:
                return _json_error(
                    "invalid_request", "Missing code or redirect_uri", headers=headers
                )
            pair = await oauth_service.exchange_code(client, code, redirect_uri, code_verifier)
        elif grant_type == "refresh_token":
            if not refresh_token:
                return _json_error("invalid_request", "Missing refresh_token", headers=headers)
            pair = await oauth_service.refresh(client, refresh_token)
        else:
            return _json_error(
                "unsupported_grant_type", "Grant type not supported", headers=headers
            )
    except OAuthError as e:
        if e.status_code == status.HTTP_401_UNAUTHORIZED and basic is not None:
            headers["WWW-Authenticate"] = "Basic"
        return _json_error(e.error, e.description, e.status_code, headers=headers)
    except Exception as e:
        logger.error(
            "OAuth token error",
            client_id=client_id,
            grant_type=grant_type,
            error=str(e),
            exc_type=type(e).__name__,
        )
        return _json_error("server_error", "Internal server error", 500, headers=headers)

    return JSONResponse(content=pair.to_response(), headers=headers)


@router.options("/oauth/userinfo")
async def userinfo_preflight(request: Request, client_registry: Registry):
    """CORS preflight for the userinfo endpoint."""
    headers = await oauth_cors_headers(request, client_registry)
    return JSONResponse(content={}, headers=headers)


@router.api_route("/oauth/userinfo", methods=["GET", "POST"])
async def userinfo(
    request: Request,
    client_registry: Registry,
    oauth_service: Service,
    authorization: Annotated[str | None, Header()] = None,
):
    """Return the claims visible to the bearer token's scopes."""
    headers = await oauth_cors_headers(request, client_registry)
    challenge = {**headers, "WWW-Authenticate": "Bearer"}

    scheme, _, bearer = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not bearer.strip():
        return _json_error(
            "invalid_request", "Missing or invalid authorization header", 401, headers=challenge
        )

    try:
        access_token = await oauth_service.validate_access_token(bearer.strip())
        if access_token is None:
            return _json_error(
                "invalid_token", "Invalid or expired access token", 401, headers=challenge
            )
        claims = await oauth_service.get_user_info(access_token)
    except OAuthError as e:
        return _json_error(e.error, e.description, e.status_code, headers=headers)
    except Exception as e:
        logger.error("OAuth userinfo error", error=str(e), exc_type=type(e).__name__)
        return _json_error("server_error", "Internal server error", 500, headers=headers)

    return JSONResponse(content=claims, headers=headers)


@router.get("/.well-known/openid_configuration")
async def openid_configuration():
    """OpenID Connect discovery document."""
    settings = get_settings()
    base = f"{settings.external_url}{settings.api_prefix}"
    return JSONResponse(
        content={
            "issuer": settings.external_url,
            "authorization_endpoint": f"{base}/oauth/authorize",
            "token_endpoint": f"{base}/oauth/token",
            "userinfo_endpoint": f"{base}/oauth/userinfo",
            "jwks_uri": f"{settings.external_url}/.well-known/jwks.json",
            "scopes_supported": ["openid", "profile", "email"],
            "response_types_supported": ["code"],
            "grant_types_supported": ["authorization_code", "refresh_token"],
            "subject_types_supported": ["public"],
            "id_token_signing_alg_values_supported": ["RS256"],
            "token_endpoint_auth_methods_supported": [
                "client_secret_post",
                "client_secret_basic",
            ],
            "code_challenge_methods_supported": ["S256", "plain"],
            "claims_supported": ["sub", "name", "email", "email_verified", "picture"],
        },
        headers={"Cache-Control": "public, max-age=3600"},
    )
