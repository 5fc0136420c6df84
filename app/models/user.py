"""
User Model

Account entity holding the credential the password reset flow overwrites.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Enum, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.enums import UserType


class User(Base):
    """
    User model for diners and restaurant owners.

    Attributes:
        id: UUID primary key.
        email: Unique, normalized email address.
        password_hash: bcrypt hash (never store plain text).
        first_name / last_name: Optional display name parts.
        user_type: customer, restaurant_owner or admin.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    user_type: Mapped[UserType] = mapped_column(
        Enum(
            UserType,
            name="user_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=UserType.CUSTOMER,
        nullable=False,
    )
    is_verified: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, user_type={self.user_type})>"
