"""Grant ledger: which user has unlocked which achievement.

The (user_id, achievement_id) unique constraint is the only thing that
stops an achievement being granted twice. try_grant leans on it with a
single insert-if-absent statement instead of check-then-insert.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Achievement, UserAchievement, utcnow
from repositories.utils import insert_if_absent, log_slow_query


class GrantOutcome(str, Enum):
    GRANTED = "granted"
    ALREADY_GRANTED = "already_granted"


@dataclass(frozen=True)
class GrantResult:
    """Result of an award attempt. ALREADY_GRANTED is a normal outcome."""

    outcome: GrantOutcome
    unlocked_at: datetime | None = None

    @property
    def granted(self) -> bool:
        return self.outcome is GrantOutcome.GRANTED


class GrantRepository:
    """Repository for UserAchievement (grant) rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("has_grant")
    async def has_grant(self, user_id: str, achievement_id: str) -> bool:
        result = await self.db.execute(
            select(
                exists().where(
                    UserAchievement.user_id == user_id,
                    UserAchievement.achievement_id == achievement_id,
                )
            )
        )
        return bool(result.scalar())

    @log_slow_query("try_grant")
    async def try_grant(self, user_id: str, achievement_id: str) -> GrantResult:
        """Record a grant if none exists for (user, achievement).

        Does NOT commit. A uniqueness conflict, including one caused by a
        concurrent caller, comes back as ALREADY_GRANTED rather than raising.
        """
        unlocked_at = utcnow()
        inserted = await insert_if_absent(
            self.db,
            UserAchievement,
            {
                "user_id": user_id,
                "achievement_id": achievement_id,
                "unlocked_at": unlocked_at,
            },
            index_elements=["user_id", "achievement_id"],
        )
        if not inserted:
            return GrantResult(outcome=GrantOutcome.ALREADY_GRANTED)
        return GrantResult(outcome=GrantOutcome.GRANTED, unlocked_at=unlocked_at)

    @log_slow_query("get_unlocked_achievements")
    async def get_unlocked(
        self, user_id: str
    ) -> Sequence[tuple[Achievement, datetime]]:
        """Unlocked achievements with unlock time, most recent first."""
        result = await self.db.execute(
            select(Achievement, UserAchievement.unlocked_at)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.unlocked_at.desc(), Achievement.sort_order)
        )
        return [(row[0], row[1]) for row in result.all()]

    @log_slow_query("get_unlock_map")
    async def get_unlock_map(self, user_id: str) -> dict[str, datetime]:
        """achievement_id -> unlocked_at for every grant the user holds."""
        result = await self.db.execute(
            select(UserAchievement.achievement_id, UserAchievement.unlocked_at).where(
                UserAchievement.user_id == user_id
            )
        )
        return {row.achievement_id: row.unlocked_at for row in result.all()}
