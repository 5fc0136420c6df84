"""
Tablehop Backend - Services Module

Business logic layer.
"""

from app.services import email_service
from app.services import otp_service
from app.services import password_reset_service

__all__ = [
    "email_service",
    "otp_service",
    "password_reset_service",
]
