"""
Password Reset Service

Email OTP password reset: issue a code, verify it, then set a new password.

Record lifecycle::

    issued (is_used=False) --verify--> verified (is_used=True) --reset--> deleted

Each operation is a single request/response against the OTP store. Failures
are raised as ``AppError`` subclasses; nothing is retried here.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional, Protocol

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    NotFoundError,
    StorageError,
    TooManyRequestsError,
    ValidationError,
)
from app.core.security import PASSWORD_MAX_BYTES, hash_otp, hash_password
from app.services.otp_service import expiry_from, generate_otp, utcnow


logger = logging.getLogger(__name__)

INVALID_CODE_MESSAGE = "Invalid or expired verification code"
INVALID_SESSION_MESSAGE = "Invalid or expired session"


class OTPStore(Protocol):
    async def add(
        self, email: str, otp_hash: str, expires_at: datetime, created_at: datetime
    ): ...

    async def find_redeemable(self, email: str, otp_hash: str, now: datetime): ...

    async def find_verified(self, email: str, otp_hash: str, now: datetime): ...

    async def claim(self, otp_id: uuid.UUID) -> bool: ...

    async def latest_created_at(self, email: str) -> Optional[datetime]: ...

    async def delete_unused(self, email: str) -> int: ...

    async def delete_for_email(self, email: str) -> int: ...

    async def delete_expired(self, now: datetime, email: Optional[str] = None) -> int: ...


class AccountDirectory(Protocol):
    async def lookup_id_by_email(self, email: str) -> Optional[uuid.UUID]: ...

    async def set_password_hash(self, user_id: uuid.UUID, password_hash: str) -> bool: ...


CodeSender = Callable[[str, str], Awaitable[bool]]


@dataclass(frozen=True)
class IssuedCode:
    email: str
    otp: str
    expires_at: datetime


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def check_new_password(password: str, min_length: int) -> None:
    """Raise ValidationError unless ``password`` fits the length rules."""
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")


class PasswordResetService:
    """
    Drives the three reset steps against injected collaborators.

    Args:
        otps: Durable OTP store.
        accounts: Account directory / credential store.
        send_code: Delivery channel for freshly issued codes.
        config: Settings (expiry, cooldown, reissue policy, password length).
        clock: Returns the current UTC time.
        password_hasher: Slow salted hash for the new credential.
    """

    def __init__(
        self,
        otps: OTPStore,
        accounts: AccountDirectory,
        send_code: CodeSender,
        config: Settings = default_settings,
        clock: Callable[[], datetime] = utcnow,
        password_hasher: Callable[[str], str] = hash_password,
    ):
        self.otps = otps
        self.accounts = accounts
        self.send_code = send_code
        self.config = config
        self.clock = clock
        self.password_hasher = password_hasher

    async def request_code(self, email: Optional[str]) -> IssuedCode:
        """
        Issue a new reset code for ``email``.

        Prior codes stay redeemable unless ``OTP_INVALIDATE_ON_REISSUE`` is set.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")

        now = self.clock()
        try:
            await self.otps.delete_expired(now, email=email)
            await self._check_cooldown(email, now)
            if self.config.OTP_INVALIDATE_ON_REISSUE:
                await self.otps.delete_unused(email)

            otp = generate_otp()
            expires_at = expiry_from(now, self.config.OTP_EXPIRE_MINUTES)
            await self.otps.add(email, hash_otp(otp), expires_at, now)
        except StorageError as e:
            raise StorageError("Failed to generate OTP") from e

        if not await self.send_code(email, otp):
            raise StorageError("Failed to send verification code")

        logger.info("Password reset code issued for %s, expires at %s", email, expires_at)
        return IssuedCode(email=email, otp=otp, expires_at=expires_at)

    async def _check_cooldown(self, email: str, now: datetime) -> None:
        cooldown = self.config.OTP_RESEND_COOLDOWN_SECONDS
        if cooldown <= 0:
            return
        latest = await self.otps.latest_created_at(email)
        if latest is None:
            return
        remaining = int(cooldown - (now - latest).total_seconds())
        if remaining > 0:
            raise TooManyRequestsError(
                f"Please wait {remaining} seconds before requesting another code",
                retry_after=remaining,
            )

    async def verify_code(self, email: Optional[str], otp: Optional[str]) -> None:
        """
        Redeem a code. Wrong, expired, used and unknown codes all fail the same way.
        """
        email = normalize_email(email)
        otp = (otp or "").strip()
        if not email or not otp:
            raise ValidationError("Email and OTP are required")

        try:
            record = await self.otps.find_redeemable(email, hash_otp(otp), self.clock())
            claimed = record is not None and await self.otps.claim(record.id)
        except StorageError as e:
            raise StorageError("Failed to verify OTP") from e

        if not claimed:
            logger.info("Rejected reset code for %s", email)
            raise NotFoundError(INVALID_CODE_MESSAGE)

        logger.info("Reset code verified for %s", email)

    async def complete_reset(
        self,
        email: Optional[str],
        otp: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """Set a new password for an email whose code was already verified."""
        email = normalize_email(email)
        otp = (otp or "").strip()
        if not email or not otp or not new_password:
            raise ValidationError("All fields are required")

        check_new_password(new_password, self.config.PASSWORD_MIN_LENGTH)

        try:
            session = await self.otps.find_verified(email, hash_otp(otp), self.clock())
        except StorageError as e:
            raise StorageError("Failed to reset password") from e
        if session is None:
            raise NotFoundError(INVALID_SESSION_MESSAGE)

        try:
            user_id = await self.accounts.lookup_id_by_email(email)
        except StorageError as e:
            raise StorageError("Failed to reset password") from e
        if user_id is None:
            logger.warning("Password reset for unknown account %s", email)
            raise NotFoundError("User not found", status_code=404)

        try:
            updated = await self.accounts.set_password_hash(
                user_id, self.password_hasher(new_password)
            )
        except StorageError as e:
            raise StorageError("Failed to update password") from e
        if not updated:
            raise StorageError("Failed to update password")

        try:
            removed = await self.otps.delete_for_email(email)
        except StorageError as e:
            raise StorageError("Failed to update password") from e

        logger.info("Password updated for %s (%d reset codes cleared)", email, removed)
