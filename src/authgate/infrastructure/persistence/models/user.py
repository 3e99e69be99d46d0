"""SQLAlchemy model for the users table.

Users are identified globally by their email address.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authgate.infrastructure.persistence.database import Base


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Attributes:
        id: Primary key (UUID string).
        email: Unique email address.
        name: Display name.
        organization: Organization name.
        image: Avatar URL.
        email_verified: Timestamp of the last email verification.
        onboarding_completed: Whether onboarding was submitted.
        created_at: Timestamp when the user was created.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="User ID (UUID)",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address",
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    organization: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    image: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
    )
    email_verified: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Timestamp of the last email verification",
    )
    onboarding_completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
