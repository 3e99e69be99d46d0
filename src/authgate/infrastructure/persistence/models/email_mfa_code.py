"""SQLAlchemy model for email sign-in codes.

Stores hashes of the 6-digit codes mailed to users signing in.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authgate.infrastructure.persistence.database import Base


class EmailMfaCodeModel(Base):
    """SQLAlchemy model for the email_mfa_codes table.

    Attributes:
        id: Primary key (UUID string).
        email: Address the code was sent to.
        code_hash: SHA-256 hash of the code.
        expires_at: Timestamp when the code expires.
        consumed_at: Timestamp when the code was consumed (nullable).
        attempt_count: Failed verification attempts.
        created_at: Timestamp when the code was created.
    """

    __tablename__ = "email_mfa_codes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Code ID (UUID)",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Email address the code was sent to",
    )
    code_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="SHA-256 hash of the code",
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    consumed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_email_mfa_codes_email_consumed", "email", "consumed_at"),
    )

    def __repr__(self) -> str:
        return f"<EmailMfaCode(id={self.id}, email={self.email})>"
