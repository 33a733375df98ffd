"""Disk-based cache for compiled API descriptions.

Uses :mod:`diskcache` to persist compiled :class:`~hypercli.models.API`
values on the filesystem.  Each entry expires at the API's own
:attr:`~hypercli.models.API.cache_until`, which the compiler derives from
the HTTP caching headers of the description fetch (see
:func:`~hypercli.cache.freshness.compute_cache_until`).  A description that
is not reusable (``cache_until`` already passed) is never stored.

Cache keys are SHA-256 hashes of ``entrypoint|description_location`` so
that two profiles pointing at the same API share one entry.

See Also:
    :class:`~hypercli.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import diskcache
from pydantic import ValidationError

from hypercli.models import API, CacheConfig

logger = logging.getLogger(__name__)


class DescriptionCache:
    """Disk-backed cache of compiled APIs.

    Args:
        cache_dir: Root directory for the cache.  A ``descriptions/``
            subdirectory is created inside it.
        config: Cache configuration (``enabled`` flag).

    Example::

        from hypercli.cache import DescriptionCache
        from hypercli.models import CacheConfig

        cache = DescriptionCache("/tmp/hypercli-cache", CacheConfig(enabled=True))
        cache.set("https://api.example.com", None, api)
        hit = cache.get("https://api.example.com")
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._cache: Optional[diskcache.Cache] = None
        self._cache_dir = Path(cache_dir)
        if config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "descriptions"))

    def get(self, entrypoint: str, location: Optional[str] = None) -> Optional[API]:
        """Return the cached API for *entrypoint*, or ``None`` on a miss.

        Entries that fail validation (e.g. written by an older release) are
        dropped and reported as a miss.
        """
        if self._cache is None:
            return None

        key = self._make_key(entrypoint, location)
        raw = self._cache.get(key)
        if raw is None:
            return None

        try:
            api = API.model_validate_json(raw)
        except ValidationError:
            logger.debug("Dropping unreadable cache entry for %s", entrypoint)
            self._cache.delete(key)
            return None

        if api.cache_until <= datetime.now(timezone.utc):
            self._cache.delete(key)
            return None
        return api

    def set(self, entrypoint: str, location: Optional[str], api: API) -> bool:
        """Store *api* until its ``cache_until``.

        Returns:
            ``True`` if the entry was stored, ``False`` when caching is
            disabled or the API is not reusable.
        """
        if self._cache is None:
            return False

        remaining = (api.cache_until - datetime.now(timezone.utc)).total_seconds()
        if remaining <= 0:
            return False

        key = self._make_key(entrypoint, location)
        self._cache.set(key, api.model_dump_json(), expire=remaining)
        logger.debug("Cached %s for %.0f seconds", entrypoint, remaining)
        return True

    def invalidate(self, entrypoint: str, location: Optional[str] = None) -> None:
        if self._cache is None:
            return
        self._cache.delete(self._make_key(entrypoint, location))

    def clear(self) -> None:
        """Remove all entries from the cache."""
        if self._cache is not None:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._cache_dir / "descriptions"),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    def _make_key(self, entrypoint: str, location: Optional[str]) -> str:
        raw = f"{entrypoint}|{location or ''}"
        return hashlib.sha256(raw.encode()).hexdigest()
