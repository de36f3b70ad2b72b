"""Repository for focus session operations.

Aggregates used by streaks and achievements only ever consider COMPLETED
sessions. IN_PROGRESS and CANCELLED rows are invisible to them.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import FocusSession, SessionStatus, utcnow
from repositories.utils import log_slow_query


class FocusSessionRepository:
    """Repository for FocusSession database operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("create_focus_session")
    async def create(
        self,
        user_id: str,
        task_id: str,
        duration: int,
        start_time: datetime | None = None,
    ) -> FocusSession:
        """Create a new IN_PROGRESS session."""
        session = FocusSession(
            user_id=user_id,
            task_id=task_id,
            duration=duration,
            status=SessionStatus.IN_PROGRESS,
            start_time=start_time or utcnow(),
        )
        self.db.add(session)
        await self.db.flush()
        return session

    @log_slow_query("get_focus_session_by_id")
    async def get_by_id(self, session_id: str) -> FocusSession | None:
        result = await self.db.execute(
            select(FocusSession).where(FocusSession.id == session_id)
        )
        return result.scalar_one_or_none()

    @log_slow_query("transition_focus_session")
    async def transition(
        self,
        session_id: str,
        new_status: SessionStatus,
        end_time: datetime | None = None,
    ) -> bool:
        """Move an IN_PROGRESS session to a terminal status.

        Conditional UPDATE: returns False when the session was not
        IN_PROGRESS at the time of the write, so two racing completions
        cannot both succeed.
        """
        result = await self.db.execute(
            update(FocusSession)
            .where(
                FocusSession.id == session_id,
                FocusSession.status == SessionStatus.IN_PROGRESS,
            )
            .values(status=new_status, end_time=end_time or utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @log_slow_query("get_completed_start_times")
    async def get_completed_start_times(self, user_id: str) -> list[datetime]:
        """Start instants of every COMPLETED session for a user (any order)."""
        result = await self.db.execute(
            select(FocusSession.start_time).where(
                FocusSession.user_id == user_id,
                FocusSession.status == SessionStatus.COMPLETED,
            )
        )
        return list(result.scalars().all())

    @log_slow_query("count_completed_sessions")
    async def count_completed(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(FocusSession.id)).where(
                FocusSession.user_id == user_id,
                FocusSession.status == SessionStatus.COMPLETED,
            )
        )
        return result.scalar_one()

    @log_slow_query("sum_completed_duration")
    async def total_completed_duration(self, user_id: str) -> int:
        """Sum of planned minutes over COMPLETED sessions (0 when none)."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(FocusSession.duration), 0)).where(
                FocusSession.user_id == user_id,
                FocusSession.status == SessionStatus.COMPLETED,
            )
        )
        return int(result.scalar_one())

    @log_slow_query("get_focus_sessions_by_user")
    async def get_by_user(
        self,
        user_id: str,
        *,
        task_id: str | None = None,
        status: SessionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[FocusSession]:
        """Get sessions for a user, most recent first."""
        query = select(FocusSession).where(FocusSession.user_id == user_id)
        if task_id is not None:
            query = query.where(FocusSession.task_id == task_id)
        if status is not None:
            query = query.where(FocusSession.status == status)
        query = (
            query.order_by(FocusSession.start_time.desc(), FocusSession.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return result.scalars().all()
