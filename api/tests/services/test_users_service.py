"""Tests for services/users_service.py."""

from unittest.mock import patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from services.users_service import get_user_timezone
from tests.factories import UserFactory, create_async

pytestmark = pytest.mark.integration


class TestGetUserTimezone:
    async def test_configured_zone(self, db_session: AsyncSession):
        user = await create_async(UserFactory, db_session, timezone="Asia/Tokyo")

        tz = await get_user_timezone(db_session, user.id)

        assert tz.name == "Asia/Tokyo"
        assert tz.fell_back is False

    async def test_missing_user_logs_a_single_warning(self, db_session: AsyncSession):
        with (
            patch("services.users_service.logger") as users_logger,
            patch("services.calendar_days.logger") as calendar_logger,
        ):
            tz = await get_user_timezone(db_session, "user_missing")

        assert tz.name == "UTC"
        assert tz.fell_back is True
        users_logger.warning.assert_called_once()
        assert users_logger.warning.call_args.args[0] == "user.timezone.not_found"
        calendar_logger.warning.assert_not_called()

    async def test_invalid_stored_zone_falls_back(self, db_session: AsyncSession):
        user = await create_async(UserFactory, db_session, timezone="Mars/Olympus")

        with patch("services.calendar_days.logger") as calendar_logger:
            tz = await get_user_timezone(db_session, user.id)

        assert tz.name == "UTC"
        assert tz.fell_back is True
        calendar_logger.warning.assert_called_once()
