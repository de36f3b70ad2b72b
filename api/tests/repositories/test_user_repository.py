"""Tests for UserRepository and TaskRepository."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from repositories.task_repository import TaskRepository
from repositories.user_repository import UserRepository
from tests.factories import TaskFactory, UserFactory, create_async

pytestmark = pytest.mark.integration


class TestUserRepository:
    async def test_get_by_id(self, db_session: AsyncSession):
        user = await create_async(UserFactory, db_session)

        result = await UserRepository(db_session).get_by_id(user.id)

        assert result is not None
        assert result.email == user.email

    async def test_get_by_id_missing(self, db_session: AsyncSession):
        assert await UserRepository(db_session).get_by_id("nope") is None

    async def test_get_timezone_returns_stored_value_unvalidated(
        self, db_session: AsyncSession
    ):
        user = await create_async(UserFactory, db_session, timezone="Not/AZone")

        assert await UserRepository(db_session).get_timezone(user.id) == "Not/AZone"

    async def test_get_timezone_missing_user(self, db_session: AsyncSession):
        assert await UserRepository(db_session).get_timezone("nope") is None


class TestTaskRepository:
    async def test_get_by_id(self, db_session: AsyncSession):
        user = await create_async(UserFactory, db_session)
        task = await create_async(TaskFactory, db_session, user_id=user.id)

        result = await TaskRepository(db_session).get_by_id(task.id)

        assert result is not None
        assert result.user_id == user.id

    async def test_get_by_id_missing(self, db_session: AsyncSession):
        assert await TaskRepository(db_session).get_by_id("nope") is None
