"""
Auth Schemas

Pydantic models for authentication and password reset request/response validation.

The mobile client speaks camelCase, so multi-word fields carry aliases.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import PASSWORD_MAX_BYTES
from app.models.enums import UserType


# ============== Password Reset ==============

class PasswordResetRequest(BaseModel):
    """Schema for requesting a reset code.

    Presence is checked by the service so that a missing email gets the
    same ``{success, message}`` answer as every other failure.
    """

    email: Optional[str] = Field(None, description="Account email address")


class VerifyResetOTPRequest(BaseModel):
    """Schema for verifying a reset code."""

    email: Optional[str] = Field(None, description="Account email address")
    otp: Optional[str] = Field(None, description="6-digit reset code")


class ResetPasswordWithOTPRequest(BaseModel):
    """Schema for setting a new password after verification."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(None, description="Account email address")
    otp: Optional[str] = Field(None, description="Previously verified reset code")
    new_password: Optional[str] = Field(
        None, alias="newPassword", description="New password (min 8 characters)"
    )


class PasswordResetResponse(BaseModel):
    """Envelope shared by the reset endpoints. ``otp`` is only set in development."""

    success: bool
    message: str
    otp: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ============== Accounts ==============

class SignUpRequest(BaseModel):
    """Schema for account creation."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    first_name: Optional[str] = Field(None, alias="firstName", max_length=100)
    last_name: Optional[str] = Field(None, alias="lastName", max_length=100)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        return v


class UpdatePasswordRequest(BaseModel):
    """Schema for changing the password of the signed-in account."""

    model_config = ConfigDict(populate_by_name=True)

    new_password: Optional[str] = Field(
        None, alias="newPassword", description="New password (min 8 characters)"
    )


class SignInRequest(BaseModel):
    """Schema for sign in."""

    email: str
    password: str


class UserResponse(BaseModel):
    """Public view of an account."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    email: str
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    user_type: UserType = Field(UserType.CUSTOMER, alias="userType")


class AuthResponse(BaseModel):
    """Schema for signup/signin response."""

    user: UserResponse
    token: str
