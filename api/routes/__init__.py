"""API route modules."""

from routes.achievements_routes import router as achievements_router
from routes.health_routes import router as health_router
from routes.sessions_routes import router as sessions_router
from routes.streaks_routes import router as streaks_router

__all__ = [
    "achievements_router",
    "health_router",
    "sessions_router",
    "streaks_router",
]
