"""Tests for the DescriptionCache module."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from hypercli.cache import DescriptionCache
from hypercli.models import API, CacheConfig, Operation

ENTRYPOINT = "https://api.example.com"


@pytest.fixture()
def cache(tmp_path):
    """Create an enabled DescriptionCache pointing at tmp_path."""
    c = DescriptionCache(tmp_path, CacheConfig(enabled=True))
    yield c
    c.close()


@pytest.fixture()
def disabled_cache(tmp_path):
    c = DescriptionCache(tmp_path, CacheConfig(enabled=False))
    yield c
    c.close()


def _make_api(expires_in: timedelta = timedelta(hours=1)) -> API:
    return API(
        title="Example",
        operations=(
            Operation(name="list-items", method="GET", uri_template=f"{ENTRYPOINT}/items"),
        ),
        cache_until=datetime.now(timezone.utc) + expires_in,
    )


# ------------------------------------------------------------------ #
# Core get/set behaviour
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_round_trip(self, cache: DescriptionCache) -> None:
        api = _make_api()
        assert cache.set(ENTRYPOINT, None, api) is True
        assert cache.get(ENTRYPOINT) == api

    def test_miss(self, cache: DescriptionCache) -> None:
        assert cache.get(ENTRYPOINT) is None

    def test_location_is_part_of_the_key(self, cache: DescriptionCache) -> None:
        cache.set(ENTRYPOINT, "/tmp/a.json", _make_api())
        assert cache.get(ENTRYPOINT) is None
        assert cache.get(ENTRYPOINT, "/tmp/a.json") is not None

    def test_expired_api_is_not_stored(self, cache: DescriptionCache) -> None:
        assert cache.set(ENTRYPOINT, None, _make_api(timedelta(seconds=-1))) is False
        assert cache.get(ENTRYPOINT) is None

    def test_stale_entry_is_dropped_on_read(self, cache: DescriptionCache) -> None:
        stale = _make_api(timedelta(seconds=-5))
        key = cache._make_key(ENTRYPOINT, None)
        cache._cache.set(key, stale.model_dump_json())

        assert cache.get(ENTRYPOINT) is None
        assert key not in cache._cache

    def test_unreadable_entry_is_dropped(self, cache: DescriptionCache) -> None:
        key = cache._make_key(ENTRYPOINT, None)
        cache._cache.set(key, '{"not": "an api"}')

        assert cache.get(ENTRYPOINT) is None
        assert key not in cache._cache


class TestDisabled:
    def test_noop(self, disabled_cache: DescriptionCache) -> None:
        assert disabled_cache.set(ENTRYPOINT, None, _make_api()) is False
        assert disabled_cache.get(ENTRYPOINT) is None
        disabled_cache.invalidate(ENTRYPOINT)
        disabled_cache.clear()
        assert disabled_cache.stats() == {"enabled": False}


class TestMaintenance:
    def test_invalidate(self, cache: DescriptionCache) -> None:
        cache.set(ENTRYPOINT, None, _make_api())
        cache.invalidate(ENTRYPOINT)
        assert cache.get(ENTRYPOINT) is None

    def test_clear_and_stats(self, cache: DescriptionCache, tmp_path) -> None:
        cache.set(ENTRYPOINT, None, _make_api())
        cache.set("https://other.example.com", None, _make_api())
        stats = cache.stats()
        assert stats["enabled"] is True
        assert stats["size"] == 2
        assert stats["directory"] == str(tmp_path / "descriptions")

        cache.clear()
        assert cache.stats()["size"] == 0
