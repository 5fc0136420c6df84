"""
Security Utilities

Password hashing, reset-code digests and JWT token management.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings


# bcrypt only looks at the first 72 bytes and newer releases reject longer input
PASSWORD_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    bcrypt generates a per-hash salt and is deliberately slow, so a leaked
    credential table cannot be reversed cheaply.

    Args:
        password: Plain text password to hash.

    Returns:
        str: Hashed password.
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain text password against a bcrypt hash.

    Returns False for empty or malformed hashes instead of raising.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


def hash_otp(code: str) -> str:
    """Hash a reset code using SHA-256."""
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def create_access_token(
    subject: str | Any,
    email: Optional[str] = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (the user ID).
        email: Optional email claim, handy for the mobile client.
        expires_delta: Optional custom expiration time.

    Returns:
        str: Encoded JWT token.
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "iat": now,
    }
    if email:
        to_encode["email"] = email

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """
    Decode and validate a JWT access token.

    Returns:
        dict: Decoded token payload if valid, None otherwise.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        return None
