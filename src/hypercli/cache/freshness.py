"""HTTP freshness rules for fetched description documents.

:func:`compute_cache_until` reads the standard caching headers of the
response a description was fetched with and returns the absolute time until
which the compiled result may be reused.  The rules follow the shared-cache
reading of RFC 9111:

1. ``Cache-Control: no-store``, ``no-cache`` or ``private`` -- not reusable,
   the expiry is the fetch time itself.
2. ``s-maxage`` (preferred) or ``max-age`` -- fetch time plus the lifetime,
   minus the ``Age`` the response already had.
3. ``Expires`` -- its distance from ``Date`` (or from the fetch time).
4. Nothing of the above -- :data:`DEFAULT_LIFETIME` (one week).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

DEFAULT_LIFETIME = timedelta(days=7)

_UNCACHEABLE = ("no-store", "no-cache", "private")


def compute_cache_until(
    headers: Optional[Mapping[str, str]],
    fetched_at: Optional[datetime] = None,
) -> datetime:
    """Return the absolute expiry of a response with *headers*.

    Args:
        headers: Response headers (any key case).  ``None`` or empty means
            no freshness information, e.g. for a description read from disk.
        fetched_at: When the response was received.  Defaults to now (UTC);
            naive values are taken as UTC.
    """
    fetched_at = _aware(fetched_at or datetime.now(timezone.utc))
    lowered = {key.lower(): value for key, value in (headers or {}).items()}

    directives = parse_cache_control(lowered.get("cache-control", ""))
    if any(name in directives for name in _UNCACHEABLE):
        return fetched_at

    for name in ("s-maxage", "max-age"):
        if name in directives:
            lifetime = _to_int(directives[name])
            if lifetime is None:
                return fetched_at
            age = _to_int(lowered.get("age", "0")) or 0
            return fetched_at + timedelta(seconds=max(lifetime - age, 0))

    if "expires" in lowered:
        expires = _parse_http_date(lowered["expires"])
        if expires is None:
            # An invalid Expires value means "already expired".
            return fetched_at
        date = _parse_http_date(lowered.get("date", "")) or fetched_at
        lifetime = expires - date
        if lifetime <= timedelta(0):
            return fetched_at
        return fetched_at + lifetime

    return fetched_at + DEFAULT_LIFETIME


def parse_cache_control(value: str) -> dict[str, Optional[str]]:
    """Split a ``Cache-Control`` header into ``{directive: argument}``."""
    directives: dict[str, Optional[str]] = {}
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, argument = part.partition("=")
        directives[name.strip().lower()] = argument.strip().strip('"') if sep else None
    return directives


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def _parse_http_date(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return _aware(parsedate_to_datetime(value))
    except (TypeError, ValueError, IndexError):
        return None


def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
