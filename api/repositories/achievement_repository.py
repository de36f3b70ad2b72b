"""Repository for achievement definitions (the catalog table)."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Achievement, CriterionKind
from repositories.utils import insert_if_absent, log_slow_query


class AchievementRepository:
    """Repository for Achievement definition rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("list_achievement_definitions")
    async def list_definitions(self) -> Sequence[Achievement]:
        """All definitions in evaluation order (sort_order, then name)."""
        result = await self.db.execute(
            select(Achievement).order_by(Achievement.sort_order, Achievement.name)
        )
        return result.scalars().all()

    @log_slow_query("insert_achievement_definition")
    async def insert_if_absent(
        self,
        *,
        achievement_id: str,
        name: str,
        description: str,
        criterion_kind: CriterionKind,
        threshold: int,
        unit: str | None = None,
        icon_url: str | None = None,
        sort_order: int = 0,
    ) -> bool:
        """Insert a definition unless its id already exists.

        Existing rows are left untouched; definitions are immutable once
        seeded. Returns True when a row was inserted.
        """
        return await insert_if_absent(
            self.db,
            Achievement,
            {
                "id": achievement_id,
                "name": name,
                "description": description,
                "criterion_kind": criterion_kind,
                "threshold": threshold,
                "unit": unit,
                "icon_url": icon_url,
                "sort_order": sort_order,
            },
            index_elements=["id"],
        )
