"""User profile lookups needed by streaks and achievements."""

from datetime import UTC

from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger
from repositories.user_repository import UserRepository
from services.calendar_days import DEFAULT_TIMEZONE, ResolvedTimezone, resolve_timezone

logger = get_logger(__name__)


async def get_user_timezone(db: AsyncSession, user_id: str) -> ResolvedTimezone:
    """Resolve the user's configured timezone.

    A missing user is treated like an unset timezone: UTC, with a single
    warning.
    """
    timezone_id = await UserRepository(db).get_timezone(user_id)
    if timezone_id is None:
        logger.warning(
            "user.timezone.not_found", user_id=user_id, fallback=DEFAULT_TIMEZONE
        )
        return ResolvedTimezone(zone=UTC, name=DEFAULT_TIMEZONE, fell_back=True)
    return resolve_timezone(timezone_id)
