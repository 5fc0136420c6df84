"""
Tablehop Backend - Models Module

This module exports all SQLAlchemy models for the application.
Import Base for Alembic migrations.
"""

from app.core.database import Base

# Enums
from app.models.enums import UserType

# Models
from app.models.user import User
from app.models.password_reset_otp import PasswordResetOTP

__all__ = [
    # Base
    "Base",
    # Enums
    "UserType",
    # Models
    "User",
    "PasswordResetOTP",
]
