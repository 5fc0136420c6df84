"""
Authentication Routes

Handles user signup, sign in, sign out and the current-user lookup.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user, get_user_repository
from app.core.config import settings
from app.core.exceptions import AuthenticationError, StorageError, ValidationError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.schemas.auth import (
    AuthResponse,
    MessageResponse,
    SignInRequest,
    SignUpRequest,
    UpdatePasswordRequest,
    UserResponse,
)
from app.services.password_reset_service import check_new_password, normalize_email


router = APIRouter(prefix="/auth", tags=["Authentication"])

Users = Annotated[UserRepository, Depends(get_user_repository)]


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=create_access_token(subject=user.id, email=user.email),
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new account",
)
async def signup(data: SignUpRequest, users: Users) -> AuthResponse:
    """
    Create a customer account and return it with an access token.

    Raises:
        ValidationError: 400 if the email is already registered.
    """
    email = normalize_email(data.email)
    if await users.get_by_email(email):
        raise ValidationError("User already exists")

    user = await users.create(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
    )
    return _auth_response(user)


@router.post(
    "/signin",
    response_model=AuthResponse,
    summary="Sign in with email and password",
)
async def signin(data: SignInRequest, users: Users) -> AuthResponse:
    """
    Raises:
        AuthenticationError: 401 for unknown email or wrong password.
    """
    email = normalize_email(data.email)
    user = await users.get_by_email(email) if email else None
    if not user or not verify_password(data.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    return _auth_response(user)


@router.post("/signout", response_model=MessageResponse, summary="Sign out")
async def signout() -> MessageResponse:
    # Tokens are stateless; the client just drops its copy
    return MessageResponse(message="Signed out successfully")


@router.get("/me", response_model=UserResponse, summary="Current user")
async def read_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    return current_user


@router.post(
    "/update-password",
    response_model=MessageResponse,
    summary="Change the signed-in account's password",
)
async def update_password(
    data: UpdatePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    users: Users,
) -> MessageResponse:
    """
    Replace the password of the account behind the bearer token.

    Raises:
        ValidationError: 400 if the new password is missing or out of bounds.
    """
    if not data.new_password:
        raise ValidationError("New password is required")
    check_new_password(data.new_password, settings.PASSWORD_MIN_LENGTH)

    if not await users.set_password_hash(current_user.id, hash_password(data.new_password)):
        raise StorageError("Failed to update password")
    return MessageResponse(message="Password updated successfully")
