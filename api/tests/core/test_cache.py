"""Unit tests for core.cache module."""

import pytest

from core.cache import (
    clear_all_caches,
    get_cached_catalog,
    invalidate_catalog_cache,
    set_cached_catalog,
)
from services.achievement_catalog import DEFAULT_ACHIEVEMENTS

pytestmark = pytest.mark.unit


class TestCatalogCache:
    def test_empty_by_default(self):
        assert get_cached_catalog() is None

    def test_set_and_get(self):
        set_cached_catalog(DEFAULT_ACHIEVEMENTS)

        assert get_cached_catalog() == DEFAULT_ACHIEVEMENTS

    def test_invalidate(self):
        set_cached_catalog(DEFAULT_ACHIEVEMENTS)

        invalidate_catalog_cache()

        assert get_cached_catalog() is None

    def test_invalidate_when_empty_is_noop(self):
        invalidate_catalog_cache()
        assert get_cached_catalog() is None

    def test_clear_all_caches(self):
        set_cached_catalog(DEFAULT_ACHIEVEMENTS)

        clear_all_caches()

        assert get_cached_catalog() is None

