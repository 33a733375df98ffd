"""Terse ``key: value`` notation for structured values.

Shorthand is how request bodies are typed on the command line and how
structured examples are shown in command help::

    name: Kari, role: admin, address.city: Paris, tags: [a, b]

Nested mappings are flattened into dotted keys, lists use ``[a, b]``, and
mappings inside lists use ``{k: v}``. Parsing wraps the text in a YAML flow
mapping, so every value form YAML accepts in flow context (numbers,
booleans, ``null``, quoted strings, nested ``[...]``/``{...}``) is accepted
here too; dotted keys are then expanded back into nested mappings.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from typing import Any

import yaml

from hypercli.exceptions import InvalidUsageError

# Strings matching these would be read back as a different type or break
# the flow syntax, so they are emitted JSON-quoted.
_NEEDS_QUOTES_RE = re.compile(r"[,:\[\]{}#&*!|>'\"%@`]|^[-?](\s|$)|^\s|\s$|^$")
_RESERVED = {"true", "false", "null", "yes", "no", "on", "off", "~"}


def render(value: Mapping[str, Any]) -> str:
    """Render a mapping as a single shorthand line.

    Example::

        >>> render({"name": "Kari", "address": {"city": "Paris"}})
        'name: Kari, address.city: Paris'
    """
    return ", ".join(f"{key}: {_render_value(item)}" for key, item in _flatten(value))


def _flatten(value: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, item in value.items():
        path = f"{prefix}{key}"
        if isinstance(item, Mapping) and item:
            yield from _flatten(item, f"{path}.")
        else:
            yield path, item


def _render_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, Mapping):
        inner = ", ".join(f"{k}: {_render_value(v)}" for k, v in value.items())
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_render_value(v) for v in value) + "]"

    text = str(value)
    if _NEEDS_QUOTES_RE.search(text) or text.lower() in _RESERVED or _looks_numeric(text):
        return json.dumps(text)
    return text


def _looks_numeric(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def parse(text: str) -> Any:
    """Parse shorthand input into native values.

    Text that already starts with ``{`` or ``[`` is read as a YAML/JSON
    document as-is; anything else is read as the inside of a flow mapping.

    Raises:
        InvalidUsageError: If the text is not valid shorthand.
    """
    stripped = text.strip()
    if not stripped:
        return {}

    source = stripped if stripped[0] in "{[" else "{" + stripped + "}"
    try:
        loaded = yaml.safe_load(source)
    except yaml.YAMLError as exc:
        raise InvalidUsageError(f"Invalid shorthand input {text!r}: {exc}") from exc

    return _expand(loaded)


def _expand(value: Any) -> Any:
    """Turn dotted keys into nested mappings, recursively."""
    if isinstance(value, list):
        return [_expand(item) for item in value]
    if not isinstance(value, dict):
        return value

    result: dict[str, Any] = {}
    for key, item in value.items():
        parts = str(key).split(".")
        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = _expand(item)
    return result
