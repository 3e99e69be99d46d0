"""SQLAlchemy model for dual-sided email change requests."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authgate.infrastructure.persistence.database import Base


class EmailChangeRequestModel(Base):
    """SQLAlchemy model for the email_change_requests table.

    A request is open while both ``completed_at`` and ``cancelled_at`` are null.
    """

    __tablename__ = "email_change_requests"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    current_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    new_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    old_email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    new_email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    old_email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    new_email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    old_email_code_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    new_email_code_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    old_email_attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    new_email_attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_email_change_requests_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<EmailChangeRequest(id={self.id}, user_id={self.user_id})>"
