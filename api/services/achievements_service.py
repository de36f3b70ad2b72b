"""Achievement evaluation and awarding.

Achievements are checked after a focus session completes. Each catalog
entry is evaluated against the user's COMPLETED sessions and granted at
most once per user. Concurrent checks for the same user are safe: the
grant ledger's unique constraint decides who wins, and the loser sees
ALREADY_GRANTED rather than an error.

Metrics are fetched lazily. A catalog with only session-count criteria
never computes a streak.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.logger import get_logger
from models import CriterionKind
from repositories.grant_repository import GrantRepository
from repositories.session_repository import FocusSessionRepository
from repositories.utils import StoreUnavailableError
from schemas import AchievementResponse, AwardResult, UnlockedAchievementResponse
from services.achievement_catalog import AchievementDefinition, get_catalog
from services.streaks_service import get_streak_data

logger = get_logger(__name__)

_EVALUATION_ERRORS = (StoreUnavailableError, SQLAlchemyError)


class _UserMetrics:
    """Per-check memo of the aggregates criteria are evaluated against."""

    def __init__(self, db: AsyncSession, user_id: str) -> None:
        self._db = db
        self._user_id = user_id
        self._completed: int | None = None
        self._streak: int | None = None
        self._focus_minutes: int | None = None

    async def completed_sessions(self) -> int:
        if self._completed is None:
            repo = FocusSessionRepository(self._db)
            self._completed = await repo.count_completed(self._user_id)
        return self._completed

    async def current_streak(self) -> int:
        if self._streak is None:
            streak = await get_streak_data(self._db, self._user_id)
            self._streak = streak.current_streak
        return self._streak

    async def focus_minutes(self) -> int:
        if self._focus_minutes is None:
            repo = FocusSessionRepository(self._db)
            self._focus_minutes = await repo.total_completed_duration(self._user_id)
        return self._focus_minutes


async def _is_satisfied(
    definition: AchievementDefinition, metrics: _UserMetrics
) -> bool:
    criterion = definition.criterion
    match criterion.kind:
        case CriterionKind.SESSION_COUNT:
            return await metrics.completed_sessions() >= criterion.threshold
        case CriterionKind.STREAK:
            return await metrics.current_streak() >= criterion.threshold
        case CriterionKind.FOCUS_TIME:
            return await metrics.focus_minutes() >= criterion.threshold_minutes
    raise ValueError(f"Unsupported criterion kind: {criterion.kind!r}")


async def check_and_award(db: AsyncSession, user_id: str) -> AwardResult:
    """Grant every satisfied, not-yet-held achievement.

    Definitions are evaluated in catalog order, each inside its own
    SAVEPOINT. A failure while evaluating one definition is logged and
    recorded in AwardResult.failures; the others are still evaluated.
    Failing to load the catalog itself propagates.

    Does NOT commit.

    Returns:
        AwardResult whose ``granted`` lists only achievements unlocked by
        this call, in catalog order.
    """
    catalog = await get_catalog(db)
    grants = GrantRepository(db)
    metrics = _UserMetrics(db, user_id)
    result = AwardResult()

    for definition in catalog:
        try:
            async with db.begin_nested():
                if await grants.has_grant(user_id, definition.id):
                    continue
                if not await _is_satisfied(definition, metrics):
                    continue
                grant = await grants.try_grant(user_id, definition.id)
        except _EVALUATION_ERRORS as e:
            logger.warning(
                "achievements.evaluation.failed",
                user_id=user_id,
                achievement=definition.name,
                error_type=type(e).__name__,
            )
            result.failures[definition.name] = type(e).__name__
            continue

        if grant.granted:
            result.granted.append(definition.name)
            logger.info(
                "achievements.granted",
                user_id=user_id,
                achievement=definition.name,
                achievement_id=definition.id,
            )

    return result


async def check_achievements_in_background(
    session_maker: async_sessionmaker[AsyncSession],
    user_id: str,
) -> AwardResult | None:
    """Run check_and_award in a fresh session and commit.

    Intended for FastAPI BackgroundTasks after a session completes, so the
    request's own session is already closed. Never raises; failures are
    logged and the next completion retries naturally.
    """
    async with session_maker() as db:
        try:
            result = await check_and_award(db, user_id)
            await db.commit()
        except Exception:
            logger.exception("achievements.check.failed", user_id=user_id)
            return None

    if result.has_failures:
        logger.warning(
            "achievements.check.partial",
            user_id=user_id,
            granted=result.granted,
            failures=result.failures,
        )
    return result


async def list_achievements_with_unlock_status(
    db: AsyncSession, user_id: str
) -> list[AchievementResponse]:
    """Every catalog achievement, in catalog order, with the user's status."""
    catalog = await get_catalog(db)
    unlocked = await GrantRepository(db).get_unlock_map(user_id)

    return [
        AchievementResponse(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            icon_url=definition.icon_url,
            is_unlocked=definition.id in unlocked,
            unlocked_at=unlocked.get(definition.id),
        )
        for definition in catalog
    ]


async def list_unlocked_achievements(
    db: AsyncSession, user_id: str
) -> list[UnlockedAchievementResponse]:
    """Achievements the user holds, most recently unlocked first."""
    rows = await GrantRepository(db).get_unlocked(user_id)
    return [
        UnlockedAchievementResponse(
            id=achievement.id,
            name=achievement.name,
            description=achievement.description,
            icon_url=achievement.icon_url,
            unlocked_at=unlocked_at,
        )
        for achievement, unlocked_at in rows
    ]
