"""SQLAlchemy models for focus sessions, streaks and achievements."""

import uuid
from datetime import UTC, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def new_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class User(TimestampMixin, Base):
    """User profile. Accounts are managed elsewhere; only timezone matters here."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # IANA identifier; may be stale or malformed, readers fall back to UTC
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    tasks: Mapped[list["Task"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )
    focus_sessions: Mapped[list["FocusSession"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )
    achievements: Mapped[list["UserAchievement"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Task(TimestampMixin, Base):
    """A unit of work that focus sessions are attached to."""

    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    user: Mapped["User"] = relationship(back_populates="tasks")
    focus_sessions: Mapped[list["FocusSession"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
    )


class SessionStatus(str, PyEnum):
    """Lifecycle of a focus session. COMPLETED and CANCELLED are terminal."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


MIN_SESSION_MINUTES = 1
MAX_SESSION_MINUTES = 120


class FocusSession(Base):
    """A single Pomodoro-style focus session.

    Created on start, mutated exactly once on completion or cancellation.
    Only COMPLETED sessions feed streaks and achievements.
    """

    __tablename__ = "focus_sessions"
    __table_args__ = (
        CheckConstraint(
            f"duration >= {MIN_SESSION_MINUTES} AND duration <= {MAX_SESSION_MINUTES}",
            name="ck_focus_sessions_duration",
        ),
        Index("ix_focus_sessions_user_status", "user_id", "status"),
        Index("ix_focus_sessions_user_start", "user_id", "start_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    task_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Planned length in minutes
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(
            SessionStatus,
            name="session_status",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=SessionStatus.IN_PROGRESS,
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user: Mapped["User"] = relationship(back_populates="focus_sessions")
    task: Mapped["Task"] = relationship(back_populates="focus_sessions")


class CriterionKind(str, PyEnum):
    """Metric an achievement criterion is checked against."""

    SESSION_COUNT = "session_count"
    STREAK = "streak"
    FOCUS_TIME = "focus_time"


class Achievement(Base):
    """Achievement definition. Seeded once, immutable afterwards."""

    __tablename__ = "achievements"
    __table_args__ = (
        CheckConstraint("threshold > 0", name="ck_achievements_threshold"),
        CheckConstraint(
            "unit IS NULL OR unit IN ('minutes', 'hours')",
            name="ck_achievements_unit",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    criterion_kind: Mapped[CriterionKind] = mapped_column(
        Enum(
            CriterionKind,
            name="criterion_kind",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # Evaluation and display order
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    grants: Mapped[list["UserAchievement"]] = relationship(
        back_populates="achievement",
        cascade="all, delete-orphan",
    )


class UserAchievement(Base):
    """Grant ledger entry: one achievement unlocked by one user.

    The unique constraint is what makes awarding safe under concurrent
    checks; there is no application-level lock.
    """

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
        Index("ix_user_achievements_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    achievement_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("achievements.id", ondelete="CASCADE"),
        nullable=False,
    )
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    user: Mapped["User"] = relationship(back_populates="achievements")
    achievement: Mapped["Achievement"] = relationship(back_populates="grants")
