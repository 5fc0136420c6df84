"""
Password Reset OTP Model

Stores one-time codes issued by the password reset flow.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Boolean, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class PasswordResetOTP(Base):
    """
    One issued password reset code.

    Several live rows may exist for the same email; the newest matching one
    wins during verification. Rows are deleted once a reset completes.

    Attributes:
        id: UUID primary key, used to address a single row on update.
        email: Normalized email the code was issued for (indexed, not unique).
        otp_hash: SHA-256 digest of the 6-digit code. The plaintext code is
            never stored, so this column takes the place of a plain ``otp``
            column and lookups compare digests.
        expires_at: Issuance time plus the configured lifetime.
        is_used: Flipped to True exactly once, by a successful verification.
        created_at: Issuance time; ordering key between sibling rows.
    """

    __tablename__ = "password_reset_otps"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
    )
    otp_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    is_used: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PasswordResetOTP(id={self.id}, email={self.email}, is_used={self.is_used})>"
