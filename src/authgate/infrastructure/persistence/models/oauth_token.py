"""SQLAlchemy models for OAuth authorization codes and tokens.

Each credential's opaque value is its primary key. A refresh token
references the access token it was minted with and is deleted with it.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from authgate.infrastructure.persistence.database import Base


class AuthorizationCodeModel(Base):
    """SQLAlchemy model for the oauth_authorization_codes table."""

    __tablename__ = "oauth_authorization_codes"

    code: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )
    client_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("oauth_clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    redirect_uri: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )
    scopes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    code_challenge: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
    )
    code_challenge_method: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<AuthorizationCode(client_id={self.client_id}, user_id={self.user_id})>"


class AccessTokenModel(Base):
    """SQLAlchemy model for the oauth_access_tokens table."""

    __tablename__ = "oauth_access_tokens"

    token: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )
    client_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("oauth_clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scopes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<AccessToken(client_id={self.client_id}, user_id={self.user_id})>"


class RefreshTokenModel(Base):
    """SQLAlchemy model for the oauth_refresh_tokens table."""

    __tablename__ = "oauth_refresh_tokens"

    token: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )
    access_token: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("oauth_access_tokens.token", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    client_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("oauth_clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<RefreshToken(client_id={self.client_id}, user_id={self.user_id})>"
