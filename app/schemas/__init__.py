"""
Tablehop Backend - Schemas Module

Pydantic models for request/response validation.
"""

from app.schemas.auth import (
    AuthResponse,
    MessageResponse,
    PasswordResetRequest,
    PasswordResetResponse,
    ResetPasswordWithOTPRequest,
    SignInRequest,
    SignUpRequest,
    UserResponse,
    VerifyResetOTPRequest,
)

__all__ = [
    # Password reset
    "PasswordResetRequest",
    "VerifyResetOTPRequest",
    "ResetPasswordWithOTPRequest",
    "PasswordResetResponse",
    "MessageResponse",
    # Accounts
    "SignUpRequest",
    "SignInRequest",
    "UserResponse",
    "AuthResponse",
]
