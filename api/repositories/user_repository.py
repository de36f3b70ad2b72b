"""User repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User
from repositories.utils import log_slow_query


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("get_user_by_id")
    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by their ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @log_slow_query("get_user_timezone")
    async def get_timezone(self, user_id: str) -> str | None:
        """Get the stored timezone identifier, or None if the user is missing.

        The value is returned as stored; validation happens when it is used.
        """
        result = await self.db.execute(
            select(User.timezone).where(User.id == user_id)
        )
        return result.scalar_one_or_none()
