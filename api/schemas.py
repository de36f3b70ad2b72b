"""Pydantic schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import MAX_SESSION_MINUTES, MIN_SESSION_MINUTES, SessionStatus


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    """Detailed health check response with component status."""

    status: str
    service: str
    database: bool
    pool: PoolStatusResponse | None = None


class StreakData(BaseModel):
    """Derived streak summary for one user. Never persisted.

    last_active_date is the latest completed-session start instant (UTC),
    not a calendar day key.
    """

    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(ge=0)
    longest_streak: int = Field(ge=0)
    last_active_date: datetime | None = None
    total_active_days: int = Field(default=0, ge=0)
    timezone: str = "UTC"


class AwardResult(BaseModel):
    """Outcome of one achievement check.

    granted lists achievements newly unlocked by this check, in catalog
    order. failures maps achievement name to the error type that stopped
    its evaluation; the rest of the catalog is still evaluated.
    """

    granted: list[str] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


class AchievementResponse(BaseModel):
    """An achievement with the caller's unlock status."""

    id: str
    name: str
    description: str
    icon_url: str | None = None
    is_unlocked: bool
    unlocked_at: datetime | None = None


class UnlockedAchievementResponse(BaseModel):
    id: str
    name: str
    description: str
    icon_url: str | None = None
    unlocked_at: datetime


class FocusSessionStartRequest(BaseModel):
    """Request to start a focus session on a task."""

    task_id: str = Field(min_length=1, max_length=36)
    duration: int = Field(
        ge=MIN_SESSION_MINUTES,
        le=MAX_SESSION_MINUTES,
        description="Planned length in minutes",
    )

    @field_validator("task_id")
    @classmethod
    def strip_task_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("task_id must not be blank")
        return v


class FocusSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    duration: int
    status: SessionStatus
    start_time: datetime
    end_time: datetime | None = None


class FocusSessionCompleteResponse(FocusSessionResponse):
    """Completed session. Achievements are checked after the response."""

    achievements_check_scheduled: bool = True


class FocusSessionHistoryResponse(BaseModel):
    sessions: list[FocusSessionResponse]
    limit: int
    offset: int


class FocusStatsResponse(BaseModel):
    """Totals over COMPLETED sessions only."""

    total_focus_time: int = Field(description="Minutes")
    completed_sessions: int
