"""FastAPI dependencies for sessions and services.

Provides the cookie-session dependencies and factories wiring
repositories into the domain services for each request.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.config import get_settings
from authgate.core.logging import get_logger
from authgate.domain.entities.user import User
from authgate.domain.services import (
    ClientRegistry,
    EmailChangeService,
    EmailVerificationService,
    OAuthService,
)
from authgate.infrastructure.auth import (
    InvalidTokenError,
    TokenExpiredError,
    jwt_service,
)
from authgate.infrastructure.persistence.database import get_db_session
from authgate.infrastructure.persistence.repositories import (
    AuthorizationCodeRepository,
    EmailChangeRepository,
    EmailMfaCodeRepository,
    OAuthClientRepository,
    OAuthTokenRepository,
    UserRepository,
)
from authgate.infrastructure.persistence.stores import (
    EmailMfaCodeStore,
    InMemoryEmailMfaCodeStore,
)
from authgate.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)


class SessionRequiredError(Exception):
    """Raised when an endpoint needs a signed-in user and there is none."""

    pass


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_user(request: Request, session: DbSession) -> User | None:
    """Resolve the session cookie to a user.

    Returns:
        The signed-in user, or None if the cookie is missing, invalid,
        expired or refers to a user that no longer exists.
    """
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        return None

    try:
        payload = jwt_service.validate_session_token(token)
    except TokenExpiredError:
        logger.info("Session rejected: token expired")
        return None
    except InvalidTokenError as e:
        logger.info("Session rejected: invalid token", error=str(e))
        return None

    user = await UserRepository(session).get_by_id(payload["sub"])
    if user is None:
        logger.info("Session rejected: user not found", user_id=payload["sub"])
    return user


OptionalUser = Annotated[User | None, Depends(get_current_user)]


async def require_user(user: OptionalUser) -> User:
    """Require a signed-in user.

    Raises:
        SessionRequiredError: If there is no valid session.
    """
    if user is None:
        raise SessionRequiredError()
    return user


AuthenticatedUser = Annotated[User, Depends(require_user)]


def get_email_service(request: Request) -> EmailService:
    """Get the application's email service."""
    return request.app.state.email_service


def get_email_code_store(request: Request, session: DbSession) -> EmailMfaCodeStore:
    """Get the email code store selected by ``email_code_store``."""
    if get_settings().email_code_store == "memory":
        store = getattr(request.app.state, "email_code_store", None)
        if store is None:
            store = InMemoryEmailMfaCodeStore()
            request.app.state.email_code_store = store
        return store
    return EmailMfaCodeRepository(session)


def get_client_registry(session: DbSession) -> ClientRegistry:
    return ClientRegistry(session, OAuthClientRepository(session))


def get_oauth_service(
    session: DbSession,
    client_registry: Annotated[ClientRegistry, Depends(get_client_registry)],
) -> OAuthService:
    return OAuthService(
        session=session,
        client_registry=client_registry,
        code_repo=AuthorizationCodeRepository(session),
        token_repo=OAuthTokenRepository(session),
        user_repo=UserRepository(session),
    )


def get_email_verification_service(
    session: DbSession,
    code_store: Annotated[EmailMfaCodeStore, Depends(get_email_code_store)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> EmailVerificationService:
    return EmailVerificationService(session, code_store, email_service)


def get_email_change_service(
    session: DbSession,
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> EmailChangeService:
    return EmailChangeService(
        session=session,
        user_repo=UserRepository(session),
        change_repo=EmailChangeRepository(session),
        email_service=email_service,
    )
