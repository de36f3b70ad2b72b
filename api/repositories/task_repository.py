"""Task repository. Tasks are only read here, for ownership checks."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Task
from repositories.utils import log_slow_query


class TaskRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("get_task_by_id")
    async def get_by_id(self, task_id: str) -> Task | None:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        return result.scalar_one_or_none()
