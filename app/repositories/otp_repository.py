"""
Password Reset OTP Repository

All reads and writes against ``password_reset_otps``.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.password_reset_otp import PasswordResetOTP
from app.repositories.base import storage_errors


class OTPRepository:
    """Durable OTP store bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @storage_errors
    async def add(
        self,
        email: str,
        otp_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> PasswordResetOTP:
        record = PasswordResetOTP(
            email=email,
            otp_hash=otp_hash,
            expires_at=expires_at,
            is_used=False,
            created_at=created_at,
        )
        self.db.add(record)
        await self.db.commit()
        return record

    async def _newest(
        self, email: str, otp_hash: str, is_used: bool, now: datetime
    ) -> Optional[PasswordResetOTP]:
        result = await self.db.execute(
            select(PasswordResetOTP)
            .where(
                and_(
                    PasswordResetOTP.email == email,
                    PasswordResetOTP.otp_hash == otp_hash,
                    PasswordResetOTP.is_used == is_used,
                    PasswordResetOTP.expires_at >= now,
                )
            )
            .order_by(PasswordResetOTP.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @storage_errors
    async def find_redeemable(
        self, email: str, otp_hash: str, now: datetime
    ) -> Optional[PasswordResetOTP]:
        """Newest unused, unexpired row for (email, code)."""
        return await self._newest(email, otp_hash, False, now)

    @storage_errors
    async def find_verified(
        self, email: str, otp_hash: str, now: datetime
    ) -> Optional[PasswordResetOTP]:
        """Newest already-verified, unexpired row for (email, code)."""
        return await self._newest(email, otp_hash, True, now)

    @storage_errors
    async def claim(self, otp_id: uuid.UUID) -> bool:
        """
        Flip ``is_used`` on one row, only if it is still unused.

        Returns False when another request got there first.
        """
        result = await self.db.execute(
            update(PasswordResetOTP)
            .where(
                and_(
                    PasswordResetOTP.id == otp_id,
                    PasswordResetOTP.is_used == False,  # noqa: E712
                )
            )
            .values(is_used=True)
        )
        await self.db.commit()
        return (result.rowcount or 0) == 1

    @storage_errors
    async def latest_created_at(self, email: str) -> Optional[datetime]:
        result = await self.db.execute(
            select(func.max(PasswordResetOTP.created_at)).where(
                PasswordResetOTP.email == email
            )
        )
        return result.scalar_one_or_none()

    @storage_errors
    async def delete_unused(self, email: str) -> int:
        result = await self.db.execute(
            delete(PasswordResetOTP).where(
                and_(
                    PasswordResetOTP.email == email,
                    PasswordResetOTP.is_used == False,  # noqa: E712
                )
            )
        )
        await self.db.commit()
        return result.rowcount or 0

    @storage_errors
    async def delete_for_email(self, email: str) -> int:
        result = await self.db.execute(
            delete(PasswordResetOTP).where(PasswordResetOTP.email == email)
        )
        await self.db.commit()
        return result.rowcount or 0

    @storage_errors
    async def delete_expired(self, now: datetime, email: Optional[str] = None) -> int:
        """Remove rows past their expiry, optionally for one email only."""
        condition = PasswordResetOTP.expires_at < now
        if email is not None:
            condition = and_(condition, PasswordResetOTP.email == email)
        result = await self.db.execute(delete(PasswordResetOTP).where(condition))
        await self.db.commit()
        return result.rowcount or 0
