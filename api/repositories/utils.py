"""Repository utility functions for common database operations."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger

logger = get_logger(__name__)

# Threshold for logging slow queries (milliseconds)
SLOW_QUERY_THRESHOLD_MS = 500

P = ParamSpec("P")
R = TypeVar("R")
M = TypeVar("M")

# Failures that mean "the store could not answer", as opposed to a bug or a
# constraint violation. IntegrityError propagates unchanged.
_UNAVAILABLE_ERRORS: tuple[type[BaseException], ...] = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
    TimeoutError,
    ConnectionError,
    OSError,
)


class StoreUnavailableError(Exception):
    """The session store, catalog or grant ledger could not be reached.

    Never retried inside the service; callers decide on retry/backoff.
    """

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store unavailable during {operation}: {cause}")


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to log slow repository operations and errors.

    Logs at WARNING level for queries exceeding SLOW_QUERY_THRESHOLD_MS.
    Connectivity failures are re-raised as StoreUnavailableError; every
    other exception propagates unchanged.

    Usage:
        @log_slow_query("count_completed_sessions")
        async def count_completed(self, user_id: str) -> int:
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except _UNAVAILABLE_ERRORS as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    "db.store_unavailable",
                    db_operation=operation_name,
                    db_duration_ms=round(duration_ms, 2),
                    db_error_type=type(e).__name__,
                )
                raise StoreUnavailableError(operation_name, e) from e

            duration_ms = (time.perf_counter() - start_time) * 1000
            if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                logger.warning(
                    "db.slow_query",
                    db_operation=operation_name,
                    db_duration_ms=round(duration_ms, 2),
                )
            return result

        return wrapper

    return decorator


async def insert_if_absent(
    db: AsyncSession,
    model: type[M],
    values: dict[str, Any],
    index_elements: list[str],
) -> bool:
    """INSERT a row unless one with the same unique key exists.

    Args:
        values: Column name -> value mapping for insert.
        index_elements: Columns forming the unique constraint to match on.

    Returns:
        True if this call inserted the row, False if it already existed.

    Note:
        Does NOT commit. Caller owns the transaction. The check and the
        insert are a single statement, so concurrent callers cannot both
        see True.
    """
    bind = db.get_bind()
    dialect = bind.dialect.name if bind else ""

    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert

        stmt = (
            pg_insert(model)
            .values(**values)
            .on_conflict_do_nothing(index_elements=index_elements)
            .returning(*[getattr(model, c) for c in index_elements])
        )
        result = await db.execute(stmt)
        return result.first() is not None

    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert

        stmt = (
            sqlite_insert(model)
            .values(**values)
            .on_conflict_do_nothing(index_elements=index_elements)
        )
        result = await db.execute(stmt)
        # sqlite reports 0 changed rows when the conflict clause fired
        return result.rowcount == 1

    try:
        async with db.begin_nested():
            db.add(model(**values))
            await db.flush()
    except sa_exc.IntegrityError:
        return False
    return True
