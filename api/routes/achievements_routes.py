"""Achievement endpoints."""

from fastapi import APIRouter, Request

from core.auth import UserId
from core.database import DbSession
from core.ratelimit import READ_LIMIT, limiter
from schemas import AchievementResponse, UnlockedAchievementResponse
from services.achievements_service import (
    list_achievements_with_unlock_status,
    list_unlocked_achievements,
)

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


@router.get(
    "",
    response_model=list[AchievementResponse],
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_achievements(
    request: Request,
    user_id: UserId,
    db: DbSession,
) -> list[AchievementResponse]:
    """All achievements, in catalog order, with the user's unlock status."""
    return await list_achievements_with_unlock_status(db, user_id)


@router.get(
    "/unlocked",
    response_model=list[UnlockedAchievementResponse],
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_unlocked_achievements(
    request: Request,
    user_id: UserId,
    db: DbSession,
) -> list[UnlockedAchievementResponse]:
    """Achievements the user has unlocked, most recent first."""
    return await list_unlocked_achievements(db, user_id)
