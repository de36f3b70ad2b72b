"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping services free of
SQL. Every public method is wrapped in log_slow_query, which also turns
connectivity failures into StoreUnavailableError.
"""

from repositories.achievement_repository import AchievementRepository
from repositories.grant_repository import GrantOutcome, GrantRepository, GrantResult
from repositories.session_repository import FocusSessionRepository
from repositories.task_repository import TaskRepository
from repositories.user_repository import UserRepository
from repositories.utils import StoreUnavailableError, log_slow_query

__all__ = [
    "AchievementRepository",
    "FocusSessionRepository",
    "GrantOutcome",
    "GrantRepository",
    "GrantResult",
    "StoreUnavailableError",
    "TaskRepository",
    "UserRepository",
    "log_slow_query",
]
