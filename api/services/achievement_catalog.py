"""Achievement catalog: the fixed set of milestones users can unlock.

Definitions live in the achievements table. They are seeded once (at
startup or via ``python -m cli seed-achievements``) and treated as
immutable configuration afterwards, which is why reads go through a TTL
cache.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from core.cache import get_cached_catalog, set_cached_catalog
from core.logger import get_logger
from models import Achievement, CriterionKind
from repositories.achievement_repository import AchievementRepository

logger = get_logger(__name__)

FOCUS_TIME_UNITS: dict[str, int] = {
    "minutes": 1,
    "hours": 60,
}


@dataclass(frozen=True)
class Criterion:
    """Metric and threshold an achievement is unlocked at."""

    kind: CriterionKind
    threshold: int
    unit: str | None = None

    def __post_init__(self) -> None:
        if self.threshold <= 0:
            raise ValueError(f"threshold must be positive, got {self.threshold}")
        if self.kind is CriterionKind.FOCUS_TIME and self.unit is not None:
            if self.unit not in FOCUS_TIME_UNITS:
                raise ValueError(f"Unknown focus time unit: {self.unit!r}")

    @property
    def threshold_minutes(self) -> int:
        """Focus-time threshold in minutes. Unit defaults to minutes."""
        return self.threshold * FOCUS_TIME_UNITS[self.unit or "minutes"]


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    description: str
    criterion: Criterion
    icon_url: str | None = None

    @classmethod
    def from_model(cls, row: Achievement) -> "AchievementDefinition":
        return cls(
            id=row.id,
            name=row.name,
            description=row.description,
            criterion=Criterion(
                kind=CriterionKind(row.criterion_kind),
                threshold=row.threshold,
                unit=row.unit,
            ),
            icon_url=row.icon_url,
        )


DEFAULT_ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="first_focus",
        name="First Focus",
        description="Complete your first Pomodoro session",
        criterion=Criterion(kind=CriterionKind.SESSION_COUNT, threshold=1),
    ),
    AchievementDefinition(
        id="week_warrior",
        name="Week Warrior",
        description="Maintain a 7-day learning streak",
        criterion=Criterion(kind=CriterionKind.STREAK, threshold=7),
    ),
    AchievementDefinition(
        id="dedicated_learner",
        name="Dedicated Learner",
        description="Accumulate 25 hours of total focus time",
        # 25 hours
        criterion=Criterion(
            kind=CriterionKind.FOCUS_TIME, threshold=1500, unit="minutes"
        ),
    ),
)


async def seed_achievements(
    db: AsyncSession,
    definitions: tuple[AchievementDefinition, ...] = DEFAULT_ACHIEVEMENTS,
) -> list[str]:
    """Insert any missing definitions. Existing rows are never modified.

    Does NOT commit. Returns the names of definitions that were inserted.
    """
    repo = AchievementRepository(db)
    inserted: list[str] = []
    for sort_order, definition in enumerate(definitions):
        created = await repo.insert_if_absent(
            achievement_id=definition.id,
            name=definition.name,
            description=definition.description,
            criterion_kind=definition.criterion.kind,
            threshold=definition.criterion.threshold,
            unit=definition.criterion.unit,
            icon_url=definition.icon_url,
            sort_order=sort_order,
        )
        if created:
            inserted.append(definition.name)

    if inserted:
        logger.info("achievements.seeded", achievements=inserted)
    return inserted


async def get_catalog(db: AsyncSession) -> tuple[AchievementDefinition, ...]:
    """All achievement definitions in evaluation order.

    Cached per process; call core.cache.invalidate_catalog_cache() after
    reseeding.
    """
    cached = get_cached_catalog()
    if cached is not None:
        return cached

    rows = await AchievementRepository(db).list_definitions()
    definitions: list[AchievementDefinition] = []
    for row in rows:
        try:
            definitions.append(AchievementDefinition.from_model(row))
        except ValueError as e:
            # One bad row must not hide the rest of the catalog
            logger.warning(
                "achievements.definition.invalid",
                achievement_id=row.id,
                criterion_kind=row.criterion_kind,
                unit=row.unit,
                error=str(e),
            )
    catalog = tuple(definitions)
    # An empty catalog usually means seeding has not run yet; don't pin it
    if catalog:
        set_cached_catalog(catalog)
    return catalog
