"""In-memory TTL caching utilities.

Note: Cache is per-worker/replica, not shared across instances.
Only data that tolerates short-term staleness belongs here.
"""

from typing import TYPE_CHECKING

from cachetools import TTLCache

from core.config import get_settings

if TYPE_CHECKING:
    from services.achievement_catalog import AchievementDefinition

_CATALOG_KEY = "catalog"

# Achievement definitions are seeded once and never edited at runtime, so a
# single entry with a generous TTL is enough.
_catalog_cache: TTLCache[str, tuple["AchievementDefinition", ...]] | None = None


def _get_catalog_cache() -> TTLCache[str, tuple["AchievementDefinition", ...]]:
    global _catalog_cache
    if _catalog_cache is None:
        _catalog_cache = TTLCache(
            maxsize=1, ttl=get_settings().catalog_cache_ttl_seconds
        )
    return _catalog_cache


def get_cached_catalog() -> tuple["AchievementDefinition", ...] | None:
    return _get_catalog_cache().get(_CATALOG_KEY)


def set_cached_catalog(catalog: tuple["AchievementDefinition", ...]) -> None:
    _get_catalog_cache()[_CATALOG_KEY] = catalog


def invalidate_catalog_cache() -> None:
    """Call after reseeding achievement definitions."""
    _get_catalog_cache().pop(_CATALOG_KEY, None)


def clear_all_caches() -> None:
    """For testing."""
    global _catalog_cache
    _catalog_cache = None

