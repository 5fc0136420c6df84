"""
OTP Service

Reset code generation and housekeeping of the OTP table.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.repositories.otp_repository import OTPRepository


logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp() -> str:
    """Generate a 6-digit code, uniform over [100000, 999999]."""
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


def expiry_from(issued_at: datetime, minutes: Optional[int] = None) -> datetime:
    """Expiry timestamp for a code issued at ``issued_at``."""
    if minutes is None:
        minutes = settings.OTP_EXPIRE_MINUTES
    return issued_at + timedelta(minutes=minutes)


async def purge_expired_otps(
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> int:
    """
    Remove expired reset codes.

    Returns:
        int: Number of rows deleted.
    """
    return await OTPRepository(db).delete_expired(now or utcnow())


async def run_cleanup_forever(
    session_maker: async_sessionmaker[AsyncSession],
    interval_seconds: int,
) -> None:
    """Periodically purge expired codes until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_maker() as db:
                removed = await purge_expired_otps(db)
            if removed:
                logger.info("Purged %d expired reset codes", removed)
        except Exception:
            logger.exception("Expired reset code sweep failed; retrying next tick")
