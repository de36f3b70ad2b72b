"""Focus session lifecycle: start, complete, cancel, and history.

A session is created IN_PROGRESS and moves exactly once to COMPLETED or
CANCELLED. Completion is what feeds streaks and achievements; the route
layer schedules the achievement check after the completing transaction
commits.
"""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger
from models import (
    MAX_SESSION_MINUTES,
    MIN_SESSION_MINUTES,
    FocusSession,
    SessionStatus,
)
from repositories.session_repository import FocusSessionRepository
from repositories.task_repository import TaskRepository
from schemas import FocusStatsResponse

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 100


class TaskNotFoundError(Exception):
    """Raised when the task a session is started on does not exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class SessionNotFoundError(Exception):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SessionForbiddenError(Exception):
    """Raised when a user acts on a task or session they do not own."""


class SessionNotInProgressError(Exception):
    """Raised when completing or cancelling a session that already ended."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session is not in progress: {session_id}")


class InvalidDurationError(ValueError):
    def __init__(self, duration: int):
        self.duration = duration
        super().__init__(
            f"Duration must be between {MIN_SESSION_MINUTES} and "
            f"{MAX_SESSION_MINUTES} minutes, got {duration}"
        )


async def start_session(
    db: AsyncSession,
    user_id: str,
    task_id: str,
    duration: int,
) -> FocusSession:
    """Start a session on one of the user's tasks.

    Raises:
        InvalidDurationError: duration outside 1..120 minutes
        TaskNotFoundError: task does not exist
        SessionForbiddenError: task belongs to another user
    """
    if not MIN_SESSION_MINUTES <= duration <= MAX_SESSION_MINUTES:
        raise InvalidDurationError(duration)

    task = await TaskRepository(db).get_by_id(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    if task.user_id != user_id:
        raise SessionForbiddenError(f"Task {task_id} belongs to another user")

    session = await FocusSessionRepository(db).create(
        user_id=user_id, task_id=task_id, duration=duration
    )
    logger.info(
        "session.started",
        user_id=user_id,
        session_id=session.id,
        task_id=task_id,
        duration=duration,
    )
    return session


async def _finish_session(
    db: AsyncSession,
    user_id: str,
    session_id: str,
    new_status: SessionStatus,
) -> FocusSession:
    repo = FocusSessionRepository(db)
    session = await repo.get_by_id(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    if session.user_id != user_id:
        raise SessionForbiddenError(f"Session {session_id} belongs to another user")

    # Conditional on IN_PROGRESS so a racing request cannot finish it twice
    if not await repo.transition(session_id, new_status):
        raise SessionNotInProgressError(session_id)

    await db.refresh(session)
    logger.info(
        f"session.{new_status.value}",
        user_id=user_id,
        session_id=session_id,
        duration=session.duration,
    )
    return session


async def complete_session(
    db: AsyncSession, user_id: str, session_id: str
) -> FocusSession:
    """Mark an IN_PROGRESS session COMPLETED.

    Does not check achievements; callers schedule that after commit.
    """
    return await _finish_session(db, user_id, session_id, SessionStatus.COMPLETED)


async def cancel_session(
    db: AsyncSession, user_id: str, session_id: str
) -> FocusSession:
    """Mark an IN_PROGRESS session CANCELLED. Cancelled sessions never count."""
    return await _finish_session(db, user_id, session_id, SessionStatus.CANCELLED)


async def get_session_history(
    db: AsyncSession,
    user_id: str,
    *,
    task_id: str | None = None,
    status: SessionStatus | None = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
) -> Sequence[FocusSession]:
    """User's sessions, newest first. limit is clamped to 1..100."""
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))
    offset = max(0, offset)
    return await FocusSessionRepository(db).get_by_user(
        user_id, task_id=task_id, status=status, limit=limit, offset=offset
    )


async def get_focus_stats(db: AsyncSession, user_id: str) -> FocusStatsResponse:
    """Total focus minutes and completed session count."""
    repo = FocusSessionRepository(db)
    return FocusStatsResponse(
        total_focus_time=await repo.total_completed_duration(user_id),
        completed_sessions=await repo.count_completed(user_id),
    )
