"""
Password Reset Routes

Email OTP password reset: request a code, verify it, set a new password.
All three answer ``{success, message}``; failures come from the AppError handler.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_password_reset_service
from app.core.config import settings
from app.schemas.auth import (
    PasswordResetRequest,
    PasswordResetResponse,
    ResetPasswordWithOTPRequest,
    VerifyResetOTPRequest,
)
from app.services.password_reset_service import PasswordResetService


router = APIRouter(prefix="/auth", tags=["Password Reset"])

ResetService = Annotated[PasswordResetService, Depends(get_password_reset_service)]


@router.post(
    "/request-password-reset",
    response_model=PasswordResetResponse,
    response_model_exclude_none=True,
    summary="Issue a password reset code",
)
async def request_password_reset(
    data: PasswordResetRequest,
    service: ResetService,
) -> PasswordResetResponse:
    """
    Generate a 6-digit code valid for 10 minutes and email it.

    The code is echoed in the response only when ``OTP_RETURN_IN_RESPONSE``
    is on (development by default).
    """
    issued = await service.request_code(data.email)
    return PasswordResetResponse(
        success=True,
        otp=issued.otp if settings.otp_in_response else None,
        message="Verification code generated successfully",
    )


@router.post(
    "/verify-reset-otp",
    response_model=PasswordResetResponse,
    response_model_exclude_none=True,
    summary="Verify a password reset code",
)
async def verify_reset_otp(
    data: VerifyResetOTPRequest,
    service: ResetService,
) -> PasswordResetResponse:
    await service.verify_code(data.email, data.otp)
    return PasswordResetResponse(
        success=True,
        message="Verification code verified successfully",
    )


@router.post(
    "/reset-password-with-otp",
    response_model=PasswordResetResponse,
    response_model_exclude_none=True,
    summary="Set a new password using a verified code",
)
async def reset_password_with_otp(
    data: ResetPasswordWithOTPRequest,
    service: ResetService,
) -> PasswordResetResponse:
    await service.complete_reset(data.email, data.otp, data.new_password)
    return PasswordResetResponse(
        success=True,
        message="Password updated successfully!",
    )
