"""Tests for get_streak_data against the database."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from services.streaks_service import get_streak_data
from tests.factories import (
    CancelledSessionFactory,
    FocusSessionFactory,
    TaskFactory,
    UserFactory,
    create_async,
    create_completed_sessions,
)

pytestmark = pytest.mark.integration

TODAY = datetime(2026, 1, 17, 12, 0, tzinfo=UTC)


async def _user_with_task(db: AsyncSession, timezone: str = "UTC"):
    user = await create_async(UserFactory, db, timezone=timezone)
    task = await create_async(TaskFactory, db, user_id=user.id)
    return user, task


@pytest.fixture(autouse=True)
def frozen_clock(time_machine):
    time_machine.move_to(TODAY, tick=False)


class TestGetStreakData:
    async def test_no_sessions(self, db_session: AsyncSession):
        user, _ = await _user_with_task(db_session)

        streak = await get_streak_data(db_session, user.id)

        assert streak.current_streak == 0
        assert streak.longest_streak == 0
        assert streak.last_active_date is None

    async def test_today_yesterday_and_three_days_ago(self, db_session: AsyncSession):
        user, task = await _user_with_task(db_session)
        await create_completed_sessions(
            db_session,
            user.id,
            task.id,
            [TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=3)],
        )

        streak = await get_streak_data(db_session, user.id)

        assert streak.current_streak == 2
        assert streak.longest_streak == 2
        assert streak.total_active_days == 3

    async def test_only_completed_sessions_count(self, db_session: AsyncSession):
        user, task = await _user_with_task(db_session)
        await create_async(
            CancelledSessionFactory, db_session, user_id=user.id, task_id=task.id
        )
        await create_async(
            FocusSessionFactory, db_session, user_id=user.id, task_id=task.id
        )

        streak = await get_streak_data(db_session, user.id)

        assert streak.current_streak == 0
        assert streak.longest_streak == 0
        assert streak.last_active_date is None

    async def test_uses_stored_timezone(self, db_session: AsyncSession):
        # 02:00 UTC on the 17th is still the 16th in Los Angeles
        user, task = await _user_with_task(db_session, timezone="America/Los_Angeles")
        await create_completed_sessions(
            db_session,
            user.id,
            task.id,
            [datetime(2026, 1, 17, 2, 0, tzinfo=UTC), TODAY - timedelta(days=2)],
        )

        streak = await get_streak_data(db_session, user.id)

        # LA days: 16th and 15th; today in LA is the 17th
        assert streak.timezone == "America/Los_Angeles"
        assert streak.current_streak == 2

    async def test_invalid_stored_timezone_falls_back_to_utc(
        self, db_session: AsyncSession
    ):
        user, task = await _user_with_task(db_session, timezone="Not/AZone")
        await create_completed_sessions(db_session, user.id, task.id, [TODAY])

        streak = await get_streak_data(db_session, user.id)

        assert streak.timezone == "UTC"
        assert streak.current_streak == 1

    async def test_unknown_user_gets_zero_streak(self, db_session: AsyncSession):
        streak = await get_streak_data(db_session, "user_missing")

        assert streak.current_streak == 0
        assert streak.timezone == "UTC"

    async def test_other_users_sessions_ignored(self, db_session: AsyncSession):
        user, task = await _user_with_task(db_session)
        other, other_task = await _user_with_task(db_session)
        await create_completed_sessions(db_session, other.id, other_task.id, [TODAY])

        streak = await get_streak_data(db_session, user.id)

        assert streak.current_streak == 0

    async def test_last_active_date_is_timezone_aware(self, db_session: AsyncSession):
        user, task = await _user_with_task(db_session)
        await create_completed_sessions(
            db_session, user.id, task.id, [TODAY - timedelta(hours=2)]
        )

        streak = await get_streak_data(db_session, user.id)

        assert streak.last_active_date == TODAY - timedelta(hours=2)
        assert streak.last_active_date.tzinfo is not None
