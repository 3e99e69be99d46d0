"""SQLAlchemy model for registered OAuth clients."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from authgate.infrastructure.persistence.database import Base


class OAuthClientModel(Base):
    """SQLAlchemy model for the oauth_clients table.

    Attributes:
        id: Client identifier (primary key).
        name: Human readable name.
        client_secret_hash: SHA-256 hex digest of the secret, empty for public clients.
        redirect_uris: JSON list of exact redirect URIs.
        allowed_origin: Browser origin used for CORS.
        scopes: Space-separated allowed scopes.
        is_active: Whether the client may be used.
        created_at: Registration timestamp.
    """

    __tablename__ = "oauth_clients"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="OAuth client_id",
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    client_secret_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="",
        comment="SHA-256 hex digest of the client secret",
    )
    redirect_uris: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
    allowed_origin: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )
    scopes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="openid profile email",
        comment="Space-separated scopes",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<OAuthClient(id={self.id}, name={self.name})>"
