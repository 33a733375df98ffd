"""Build request bodies from command-line arguments and piped input.

Arguments after an operation's path parameters are body input, written in
the shorthand notation of :mod:`hypercli.shorthand`::

    hypercli api create-pet name: Rex, tags: [good, dog]

When no arguments are given and stdin is piped, stdin is sent as-is.  When
both are present, the arguments are merged over the decoded stdin document.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence, TextIO

import yaml

from hypercli import shorthand
from hypercli.exceptions import InvalidUsageError


def build_body(
    media_type: str,
    args: Sequence[str],
    stdin: Optional[TextIO] = None,
) -> Optional[str]:
    """Return the request body text for *media_type*, or ``None`` for no body.

    Structured media types (JSON and YAML flavours) are marshalled from the
    parsed shorthand; anything else receives the arguments joined by spaces.
    """
    piped = _read_piped(stdin)

    if not args:
        return piped

    if not _is_structured(media_type):
        return " ".join(args)

    data: Any = shorthand.parse(" ".join(args))
    if piped is not None:
        base = _decode(piped)
        if isinstance(base, dict) and isinstance(data, dict):
            data = _deep_merge(base, data)

    return marshal(media_type, data)


def marshal(media_type: str, data: Any) -> str:
    if "yaml" in media_type and "json" not in media_type:
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, ensure_ascii=False)


def _is_structured(media_type: str) -> bool:
    return "json" in media_type or "yaml" in media_type


def _read_piped(stream: Optional[TextIO]) -> Optional[str]:
    if stream is None or stream.isatty():
        return None
    text = stream.read()
    return text if text.strip() else None


def _decode(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidUsageError(f"Cannot decode body from stdin: {exc}") from exc


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
