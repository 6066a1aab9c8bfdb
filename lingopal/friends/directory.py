"""
Read-only user lookups used by the friend subsystem.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lingopal.core.errors import NotFoundError
from lingopal.models.user import User


class UserDirectory:
    """Lookups against the users table"""

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
        """Get user by ID"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def require(db: AsyncSession, user_id: str) -> User:
        user = await UserDirectory.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return user
