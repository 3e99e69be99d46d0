"""Pytest configuration for all tests."""

import os
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

os.environ.setdefault("AUTHGATE_ENVIRONMENT", "testing")
os.environ.setdefault("AUTHGATE_LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import authgate.infrastructure.persistence.models  # noqa: F401
from authgate.core.config import get_settings
from authgate.domain.entities.oauth_client import OAuthClient
from authgate.domain.entities.oauth_token import AccessToken, RefreshToken, TokenPair
from authgate.domain.entities.user import User
from authgate.infrastructure.auth.jwt_service import jwt_service
from authgate.infrastructure.auth.token_codec import generate_secure_token, hash_code
from authgate.infrastructure.persistence.database import Base
from authgate.infrastructure.persistence.repositories import (
    OAuthClientRepository,
    OAuthTokenRepository,
    UserRepository,
)
from authgate.infrastructure.services.email.console_provider import ConsoleEmailProvider
from authgate.infrastructure.services.email_service import EmailService

CONFIDENTIAL_CLIENT_ID = "test-client"
CONFIDENTIAL_CLIENT_SECRET = "test-client-secret"
CONFIDENTIAL_REDIRECT_URI = "https://app.example.com/callback"
CONFIDENTIAL_ORIGIN = "https://app.example.com"

PUBLIC_CLIENT_ID = "public-client"
PUBLIC_REDIRECT_URI = "https://spa.example.com/callback"
PUBLIC_ORIGIN = "https://spa.example.com"

CODE_PATTERN = re.compile(r"code(?: is)? (\d{6})")


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def email_provider() -> ConsoleEmailProvider:
    """Email provider that records outgoing mail in ``outbox``."""
    return ConsoleEmailProvider()


@pytest.fixture
def email_service(email_provider: ConsoleEmailProvider) -> EmailService:
    return EmailService(provider=email_provider)


@pytest.fixture
def read_code(email_provider: ConsoleEmailProvider) -> Callable[[str], str]:
    """Return a helper extracting the latest 6-digit code mailed to an address."""

    def _read(to: str) -> str:
        for message in reversed(email_provider.outbox):
            if message["to"] == to:
                match = CODE_PATTERN.search(message["text_body"] or "")
                assert match, f"No code in email to {to}"
                return match.group(1)
        raise AssertionError(f"No email sent to {to}")

    return _read


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    email_service: EmailService,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database dependency."""
    from authgate.infrastructure.api.app import app
    from authgate.infrastructure.persistence.database import get_db_session

    app.dependency_overrides[get_db_session] = lambda: db_session
    app.state.email_service = email_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides = {}


@pytest_asyncio.fixture
async def confidential_client(db_session: AsyncSession) -> OAuthClient:
    """A confidential client authenticating with a secret."""
    client = await OAuthClientRepository(db_session).create(
        OAuthClient(
            id=CONFIDENTIAL_CLIENT_ID,
            name="Test App",
            client_secret_hash=hash_code(CONFIDENTIAL_CLIENT_SECRET),
            redirect_uris=[CONFIDENTIAL_REDIRECT_URI],
            allowed_origin=CONFIDENTIAL_ORIGIN,
            scopes=["openid", "profile", "email"],
        )
    )
    await db_session.commit()
    return client


@pytest_asyncio.fixture
async def public_client(db_session: AsyncSession) -> OAuthClient:
    """A public client that relies on PKCE."""
    client = await OAuthClientRepository(db_session).create(
        OAuthClient(
            id=PUBLIC_CLIENT_ID,
            name="Single Page App",
            client_secret_hash="",
            redirect_uris=[PUBLIC_REDIRECT_URI],
            allowed_origin=PUBLIC_ORIGIN,
            scopes=["openid", "profile", "email"],
        )
    )
    await db_session.commit()
    return client


@pytest_asyncio.fixture
async def onboarded_user(db_session: AsyncSession) -> User:
    """A user who has signed in before and finished onboarding."""
    user = await UserRepository(db_session).create(
        User(
            id=str(uuid.uuid4()),
            email="alice@example.com",
            name="Alice Smith",
            organization="Acme",
            email_verified=datetime.now(timezone.utc),
            onboarding_completed=True,
        )
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def new_user(db_session: AsyncSession) -> User:
    """A user who signed in but has not completed onboarding."""
    user = await UserRepository(db_session).create(
        User(id=str(uuid.uuid4()), email="bob@example.com")
    )
    await db_session.commit()
    return user


@pytest.fixture
def sign_in(client: AsyncClient) -> Callable[[User], None]:
    """Return a helper that attaches a session cookie for a user to the client."""

    def _sign_in(user: User) -> None:
        token = jwt_service.create_session_token(user.id, user.email)
        client.cookies.set(get_settings().session_cookie_name, token)

    return _sign_in


@pytest.fixture
def issue_tokens(db_session: AsyncSession):
    """Return a helper storing a token pair directly."""

    async def _issue(
        user: User,
        client_id: str = CONFIDENTIAL_CLIENT_ID,
        scopes: list[str] | None = None,
        access_expires_in: timedelta = timedelta(hours=1),
    ) -> TokenPair:
        now = datetime.now(timezone.utc)
        access = AccessToken(
            token=generate_secure_token(),
            client_id=client_id,
            user_id=user.id,
            scopes=scopes or ["openid", "profile", "email"],
            expires=now + access_expires_in,
        )
        refresh = RefreshToken(
            token=generate_secure_token(),
            access_token=access.token,
            client_id=client_id,
            user_id=user.id,
            expires=now + timedelta(days=30),
        )
        pair = await OAuthTokenRepository(db_session).create_pair(
            TokenPair(access_token=access, refresh_token=refresh)
        )
        await db_session.commit()
        return pair

    return _issue
