"""
Tablehop Backend - Repositories Module

SQLAlchemy-backed data access, one class per table.
"""

from app.repositories.otp_repository import OTPRepository
from app.repositories.user_repository import UserRepository

__all__ = ["OTPRepository", "UserRepository"]
