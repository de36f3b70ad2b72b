"""Streak calculation over completed focus sessions.

A streak is a run of consecutive calendar days, in the user's timezone,
each with at least one COMPLETED session. The current streak only counts
while its most recent day is today or yesterday, so a user has until the
end of today to extend it.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from repositories.session_repository import FocusSessionRepository
from schemas import StreakData
from services.calendar_days import (
    ResolvedTimezone,
    as_utc,
    day_difference,
    resolve_timezone,
    to_day_key,
    today_key,
    yesterday_key,
)
from services.users_service import get_user_timezone


def _current_run(keys_desc: list[str], today: str, yesterday: str) -> int:
    if keys_desc[0] not in (today, yesterday):
        return 0

    run = 1
    for newer, older in zip(keys_desc, keys_desc[1:]):
        if day_difference(newer, older) != 1:
            break
        run += 1
    return run


def _longest_run(keys_desc: list[str]) -> int:
    longest = 1
    run = 1
    for newer, older in zip(keys_desc, keys_desc[1:]):
        if day_difference(newer, older) == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def calculate_streak_for_zone(
    start_times: Iterable[datetime],
    tz: ResolvedTimezone,
    *,
    now: datetime | None = None,
) -> StreakData:
    """calculate_streak against an already-resolved timezone."""
    instants = list(start_times)
    if not instants:
        return StreakData(
            current_streak=0,
            longest_streak=0,
            last_active_date=None,
            total_active_days=0,
            timezone=tz.name,
        )

    keys_desc = sorted({to_day_key(t, tz.zone) for t in instants}, reverse=True)

    # Read the clock once so today and yesterday agree across midnight
    now = now if now is not None else datetime.now(UTC)
    current = _current_run(
        keys_desc, today_key(tz.zone, now), yesterday_key(tz.zone, now)
    )

    return StreakData(
        current_streak=current,
        longest_streak=_longest_run(keys_desc),
        last_active_date=max(as_utc(t) for t in instants),
        total_active_days=len(keys_desc),
        timezone=tz.name,
    )


def calculate_streak(
    start_times: Iterable[datetime],
    timezone_id: str | None,
    *,
    now: datetime | None = None,
) -> StreakData:
    """Compute current and longest streak from completed-session start times.

    Duplicates and ordering of start_times do not matter. An invalid
    timezone_id is treated as UTC.

    Args:
        start_times: Start instants of the user's COMPLETED sessions.
        timezone_id: IANA identifier used to map instants to calendar days.
        now: Evaluation instant; defaults to the current time.
    """
    return calculate_streak_for_zone(
        start_times, resolve_timezone(timezone_id), now=now
    )


async def get_streak_data(db: AsyncSession, user_id: str) -> StreakData:
    """Current streak summary for a user, in the user's timezone."""
    tz = await get_user_timezone(db, user_id)
    start_times = await FocusSessionRepository(db).get_completed_start_times(user_id)
    return calculate_streak_for_zone(start_times, tz)
