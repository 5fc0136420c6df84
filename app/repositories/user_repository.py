"""
User Repository

Account directory and credential store backed by ``users``.
"""

import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models.enums import UserType
from app.models.user import User
from app.repositories.base import storage_errors


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @storage_errors
    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @storage_errors
    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @storage_errors
    async def lookup_id_by_email(self, email: str) -> Optional[uuid.UUID]:
        result = await self.db.execute(select(User.id).where(User.email == email))
        return result.scalar_one_or_none()

    @storage_errors
    async def set_password_hash(self, user_id: uuid.UUID, password_hash: str) -> bool:
        """Overwrite the stored credential. Returns False if no row matched."""
        result = await self.db.execute(
            update(User).where(User.id == user_id).values(password_hash=password_hash)
        )
        await self.db.commit()
        return (result.rowcount or 0) == 1

    @storage_errors
    async def create(
        self,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        user_type: UserType = UserType.CUSTOMER,
    ) -> User:
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            user_type=user_type,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            await self.db.rollback()
            raise ConflictError("User already exists", status_code=400) from e
        await self.db.refresh(user)
        return user
