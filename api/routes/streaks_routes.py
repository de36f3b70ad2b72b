"""Streak endpoints."""

from fastapi import APIRouter, Request

from core.auth import UserId
from core.database import DbSession
from core.ratelimit import READ_LIMIT, limiter
from schemas import StreakData
from services.streaks_service import get_streak_data


router = APIRouter(prefix="/api/streaks", tags=["streaks"])


@router.get(
    "",
    response_model=StreakData,
    responses={
        401: {"description": "Not authenticated"},
        503: {"description": "Session store unavailable"},
    },
)
@limiter.limit(READ_LIMIT)
async def get_user_streak(
    request: Request,
    user_id: UserId,
    db: DbSession,
) -> StreakData:
    """Get the user's current and longest streak.

    Days are calendar days in the user's configured timezone; the current
    streak survives until the end of the day after the last active day.
    """
    return await get_streak_data(db, user_id)
