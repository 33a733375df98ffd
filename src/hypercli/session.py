"""Load the compiled API for a profile, going through the description cache.

Both the generated ``api`` commands and the ``inspect`` commands need the
same :class:`~hypercli.models.API`; :func:`load_api` is the one place that
decides whether it comes from the cache or from a fresh fetch and compile.
"""

from __future__ import annotations

import logging
from typing import Optional

from hypercli.cache import DescriptionCache
from hypercli.config import get_cache_dir
from hypercli.models import API, GlobalConfig, Profile
from hypercli.parser import (
    DescriptionResolver,
    compile_api,
    discover_description,
    load_description,
)

logger = logging.getLogger(__name__)


def load_api(
    profile: Profile,
    cache: Optional[DescriptionCache] = None,
    *,
    refresh: bool = False,
) -> API:
    """Return the compiled API described for *profile*.

    The description is read from ``profile.description`` when set and
    discovered from ``profile.entrypoint`` otherwise.  A fresh cache entry
    is used unless *refresh* is given; a newly compiled API is stored back.

    Raises:
        DescriptionParseError: If no description can be loaded or compiled.
        ResolutionError: If a path template cannot be made absolute.
    """
    if cache is not None and not refresh:
        cached = cache.get(profile.entrypoint, profile.description)
        if cached is not None:
            logger.debug("Using cached description for %s", profile.entrypoint)
            return cached

    if profile.description:
        loaded = load_description(profile.description)
    else:
        loaded = discover_description(profile.entrypoint, timeout=profile.request.timeout)
    logger.debug("Loaded description from %s", loaded.location)

    api = compile_api(
        loaded.document,
        profile.entrypoint,
        DescriptionResolver(profile.entrypoint, loaded.location),
        headers=loaded.headers,
        fetched_at=loaded.fetched_at,
    )

    if cache is not None:
        cache.set(profile.entrypoint, profile.description, api)
    return api


def open_cache(config: GlobalConfig) -> DescriptionCache:
    """Open the description cache in the user cache directory."""
    return DescriptionCache(get_cache_dir(), config.cache)
