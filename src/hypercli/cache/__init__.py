"""Caching of compiled API descriptions.

This package provides :class:`DescriptionCache`, which stores compiled
:class:`~hypercli.models.API` values on disk using :mod:`diskcache`, and
:func:`compute_cache_until`, which derives how long a fetched description
may be reused from its HTTP caching headers.

The cache is consumed by :func:`hypercli.session.load_api` and is controlled by
the ``cache`` section of the global configuration
(:class:`~hypercli.models.CacheConfig`).
"""

from hypercli.cache.cache import DescriptionCache
from hypercli.cache.freshness import DEFAULT_LIFETIME, compute_cache_until

__all__ = ["DescriptionCache", "compute_cache_until", "DEFAULT_LIFETIME"]
