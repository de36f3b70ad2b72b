"""FastAPI application for the Focus Streaks API."""

import asyncio
import logging
from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.sessions import SessionMiddleware

from core.cache import invalidate_catalog_cache
from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    create_tables,
    dispose_engine,
    init_db,
)
from core.logger import configure_logging
from core.middleware import RequestContextMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from repositories.utils import StoreUnavailableError
from routes import (
    achievements_router,
    health_router,
    sessions_router,
    streaks_router,
)
from services.achievement_catalog import seed_achievements
from services.sessions_service import (
    InvalidDurationError,
    SessionForbiddenError,
    SessionNotFoundError,
    SessionNotInProgressError,
    TaskNotFoundError,
)

configure_logging()
logger = logging.getLogger(__name__)

# Domain exception -> (status code, client-facing detail)
_DOMAIN_ERRORS: dict[type[Exception], tuple[int, str]] = {
    TaskNotFoundError: (404, "Task not found"),
    SessionNotFoundError: (404, "Session not found"),
    SessionForbiddenError: (403, "Forbidden"),
    SessionNotInProgressError: (409, "Session is not in progress"),
    InvalidDurationError: (422, "Invalid session duration"),
}


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map service-layer exceptions to HTTP responses."""
    status_code, detail = _DOMAIN_ERRORS.get(type(exc), (400, "Bad request"))
    logger.info(
        "request.domain_error",
        extra={
            "exc_type": type(exc).__name__,
            "status_code": status_code,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=status_code, content={"detail": detail})


async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """The store could not answer; never return a guessed value instead."""
    operation = exc.operation if isinstance(exc, StoreUnavailableError) else None
    logger.error(
        "store.unavailable",
        extra={"operation": operation, "path": request.url.path},
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable. Please retry."},
        headers={"Retry-After": "5"},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        extra={
            "exc_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again."},
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for request validation errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    logger.warning(
        "request.validation_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def seed_catalog(session_maker: async_sessionmaker[AsyncSession]) -> None:
    """Insert missing achievement definitions and drop the cached catalog."""
    async with session_maker() as db:
        inserted = await seed_achievements(db)
        await db.commit()
    invalidate_catalog_cache()
    logger.info("achievements.catalog.ready", extra={"inserted": len(inserted)})


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create DB engine and tables at startup, dispose on shutdown."""
    settings = get_settings()
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)

    app.state.init_done = False
    app.state.init_error = None

    try:
        async with asyncio.timeout(60):
            await init_db(app.state.engine)
            await create_tables(app.state.engine)
            if settings.seed_achievements_on_startup:
                await seed_catalog(app.state.session_maker)

        app.state.init_done = True
        logger.info("init.complete")
    except TimeoutError:
        logger.error(
            "init.timeout",
            extra={
                "init_done": app.state.init_done,
                "hint": "Startup hung, check DB connectivity",
            },
        )
        raise RuntimeError("Application startup timed out")
    except Exception as e:
        app.state.init_error = str(e)
        logger.error(
            "init.failed",
            extra={"error": str(e)},
            exc_info=True,
        )
        raise

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


_settings = get_settings()

app = fastapi.FastAPI(
    title="Focus Streaks API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.enable_docs or _settings.debug else None,
    redoc_url="/redoc" if _settings.enable_docs or _settings.debug else None,
    openapi_url=("/openapi.json" if _settings.enable_docs or _settings.debug else None),
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
for _exc_type in _DOMAIN_ERRORS:
    app.add_exception_handler(_exc_type, domain_exception_handler)
app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    SessionMiddleware,
    secret_key=_settings.session_secret_key,
    session_cookie="session",
    max_age=60 * 60 * 24 * 30,
    same_site="lax",
    https_only=_settings.require_https,
)
# Outermost, so every log line for the request carries request_id
app.add_middleware(RequestContextMiddleware)

app.include_router(health_router)
app.include_router(streaks_router)
app.include_router(achievements_router)
app.include_router(sessions_router)
