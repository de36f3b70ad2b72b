"""Focus session endpoints: start, complete, cancel, history and stats."""

from fastapi import APIRouter, BackgroundTasks, Query, Request

from core.auth import UserId
from core.database import DbSession
from core.ratelimit import READ_LIMIT, SESSION_WRITE_LIMIT, limiter
from models import SessionStatus
from schemas import (
    FocusSessionCompleteResponse,
    FocusSessionHistoryResponse,
    FocusSessionResponse,
    FocusSessionStartRequest,
    FocusStatsResponse,
)
from services.achievements_service import check_achievements_in_background
from services.sessions_service import (
    DEFAULT_HISTORY_LIMIT,
    MAX_HISTORY_LIMIT,
    cancel_session,
    complete_session,
    get_focus_stats,
    get_session_history,
    start_session,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

_WRITE_RESPONSES: dict[int | str, dict[str, str]] = {
    401: {"description": "Not authenticated"},
    403: {"description": "Session or task belongs to another user"},
    404: {"description": "Session or task not found"},
}


@router.post(
    "",
    response_model=FocusSessionResponse,
    status_code=201,
    responses=_WRITE_RESPONSES,
)
@limiter.limit(SESSION_WRITE_LIMIT)
async def start_focus_session(
    request: Request,
    body: FocusSessionStartRequest,
    user_id: UserId,
    db: DbSession,
) -> FocusSessionResponse:
    """Start a focus session on one of the user's tasks."""
    session = await start_session(db, user_id, body.task_id, body.duration)
    return FocusSessionResponse.model_validate(session)


@router.post(
    "/{session_id}/complete",
    response_model=FocusSessionCompleteResponse,
    responses={**_WRITE_RESPONSES, 409: {"description": "Session already ended"}},
)
@limiter.limit(SESSION_WRITE_LIMIT)
async def complete_focus_session(
    request: Request,
    session_id: str,
    user_id: UserId,
    db: DbSession,
    background_tasks: BackgroundTasks,
) -> FocusSessionCompleteResponse:
    """Complete a session, then check achievements after responding.

    The completion is committed before the check is scheduled; the check
    runs in its own database session and cannot fail this request.
    """
    session = await complete_session(db, user_id, session_id)
    await db.commit()

    background_tasks.add_task(
        check_achievements_in_background,
        request.app.state.session_maker,
        user_id,
    )
    return FocusSessionCompleteResponse.model_validate(session)


@router.post(
    "/{session_id}/cancel",
    response_model=FocusSessionResponse,
    responses={**_WRITE_RESPONSES, 409: {"description": "Session already ended"}},
)
@limiter.limit(SESSION_WRITE_LIMIT)
async def cancel_focus_session(
    request: Request,
    session_id: str,
    user_id: UserId,
    db: DbSession,
) -> FocusSessionResponse:
    """Cancel a session. Cancelled sessions never count toward streaks."""
    session = await cancel_session(db, user_id, session_id)
    return FocusSessionResponse.model_validate(session)


@router.get(
    "",
    response_model=FocusSessionHistoryResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def list_focus_sessions(
    request: Request,
    user_id: UserId,
    db: DbSession,
    task_id: str | None = Query(default=None, max_length=36),
    status: SessionStatus | None = None,
    limit: int = Query(default=DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    offset: int = Query(default=0, ge=0),
) -> FocusSessionHistoryResponse:
    """The user's sessions, newest first."""
    sessions = await get_session_history(
        db, user_id, task_id=task_id, status=status, limit=limit, offset=offset
    )
    return FocusSessionHistoryResponse(
        sessions=[FocusSessionResponse.model_validate(s) for s in sessions],
        limit=limit,
        offset=offset,
    )


@router.get(
    "/stats",
    response_model=FocusStatsResponse,
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(READ_LIMIT)
async def get_stats(
    request: Request,
    user_id: UserId,
    db: DbSession,
) -> FocusStatsResponse:
    """Total focus minutes and number of completed sessions."""
    return await get_focus_stats(db, user_id)
