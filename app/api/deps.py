"""
API Dependencies

Reusable dependencies for API routes: repositories, services and the
authenticated user.
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.security import decode_access_token
from app.models.user import User
from app.repositories.otp_repository import OTPRepository
from app.repositories.user_repository import UserRepository
from app.services import email_service
from app.services.password_reset_service import PasswordResetService


# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/signin")


def get_user_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserRepository:
    return UserRepository(db)


def get_otp_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OTPRepository:
    return OTPRepository(db)


def get_password_reset_service(
    otps: Annotated[OTPRepository, Depends(get_otp_repository)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> PasswordResetService:
    """
    Build the reset service for one request.

    Both repositories share the request's database session.
    """
    return PasswordResetService(
        otps=otps,
        accounts=users,
        send_code=email_service.send_password_reset_email,
        config=settings,
    )


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> User:
    """
    Dependency to get the current authenticated user.

    Raises:
        HTTPException: 401 if the token is invalid or the user is gone.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id_str: str | None = payload.get("sub")
    if user_id_str is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise credentials_exception

    user = await users.get_by_id(user_id)
    if user is None:
        raise credentials_exception

    return user
