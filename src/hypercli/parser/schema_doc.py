"""Render JSON Schemas as compact outlines for command help.

The compiler embeds one of these outlines per request body and per
response content type in an operation's long description::

    {
      id*: (integer format:int64) Unique identifier
      tags: [
        (string)
      ]
    }

Required properties carry a ``*``.  Request outlines (``mode="write"``)
leave out ``readOnly`` properties and response outlines (``mode="read"``)
leave out ``writeOnly`` ones.  Schemas still holding an unresolved ``$ref``
(a cycle left in place by :func:`~hypercli.parser.resolver.resolve_refs`)
render as ``<recursive ref>``.
"""

from __future__ import annotations

import json
from typing import Any

MODE_READ = "read"
MODE_WRITE = "write"

_MAX_DEPTH = 32

_SCALAR_HINTS = (
    ("format", "format"),
    ("minimum", "min"),
    ("maximum", "max"),
    ("minLength", "min"),
    ("maxLength", "max"),
    ("minItems", "min"),
    ("maxItems", "max"),
    ("pattern", "pattern"),
)


def render_schema(schema: Any, mode: str = MODE_READ) -> str:
    """Return the outline for *schema* as a multi-line string."""
    return _render(schema, "", mode, 0)


def _render(schema: Any, indent: str, mode: str, depth: int) -> str:
    if not isinstance(schema, dict):
        return "(any)"
    if "$ref" in schema:
        return "<recursive ref>"
    if depth > _MAX_DEPTH:
        return "..."

    for key in ("oneOf", "anyOf"):
        variants = schema.get(key)
        if isinstance(variants, list) and variants:
            inner = f"\n{indent}  ".join(
                _render(v, indent + "  ", mode, depth + 1) for v in variants
            )
            return f"{key}{{\n{indent}  {inner}\n{indent}}}"

    if isinstance(schema.get("allOf"), list):
        schema = _merge_all_of(schema)

    schema_type = schema_type_of(schema)

    if schema_type == "object":
        return _render_object(schema, indent, mode, depth)

    if schema_type == "array":
        items = _render(schema.get("items", {}), indent + "  ", mode, depth + 1)
        return f"[\n{indent}  {items}\n{indent}]"

    return _render_scalar(schema, schema_type)


def _render_object(schema: dict[str, Any], indent: str, mode: str, depth: int) -> str:
    properties = schema.get("properties") or {}
    required = set(schema.get("required") or [])
    lines: list[str] = []

    for name, prop in properties.items():
        if not isinstance(prop, dict):
            continue
        if mode == MODE_READ and prop.get("writeOnly"):
            continue
        if mode == MODE_WRITE and prop.get("readOnly"):
            continue
        marker = "*" if name in required else ""
        rendered = _render(prop, indent + "  ", mode, depth + 1)
        lines.append(f"{indent}  {name}{marker}: {rendered}")

    additional = schema.get("additionalProperties")
    if isinstance(additional, dict):
        rendered = _render(additional, indent + "  ", mode, depth + 1)
        lines.append(f"{indent}  <any>: {rendered}")

    if not lines:
        return _render_scalar(schema, "object")
    return "{\n" + "\n".join(lines) + f"\n{indent}}}"


def _render_scalar(schema: dict[str, Any], schema_type: str) -> str:
    parts = [schema_type]
    for key, label in _SCALAR_HINTS:
        if key in schema:
            parts.append(f"{label}:{schema[key]}")
    if isinstance(schema.get("enum"), list):
        parts.append("enum:" + ",".join(str(v) for v in schema["enum"]))
    if "default" in schema:
        parts.append("default:" + json.dumps(schema["default"], default=str))
    if schema.get("nullable"):
        parts.append("nullable")

    text = "(" + " ".join(parts) + ")"
    description = schema.get("description")
    if isinstance(description, str) and description.strip():
        text += " " + description.strip().split("\n", 1)[0]
    return text


def _merge_all_of(schema: dict[str, Any]) -> dict[str, Any]:
    """Flatten ``allOf`` sub-schemas into one object schema."""
    merged: dict[str, Any] = {k: v for k, v in schema.items() if k != "allOf"}
    properties: dict[str, Any] = dict(merged.get("properties") or {})
    required: list[str] = list(merged.get("required") or [])

    for part in schema["allOf"]:
        if not isinstance(part, dict):
            continue
        if isinstance(part.get("allOf"), list):
            part = _merge_all_of(part)
        properties.update(part.get("properties") or {})
        required.extend(part.get("required") or [])
        for key, value in part.items():
            if key not in ("properties", "required"):
                merged.setdefault(key, value)

    if properties:
        merged["properties"] = properties
        merged.setdefault("type", "object")
    if required:
        merged["required"] = required
    return merged


def schema_type_of(schema: Any) -> str:
    """Return the effective type string of *schema*.

    Handles OpenAPI 3.1 type arrays (e.g. ``["string", "null"]``) by taking
    the first non-null entry, and infers ``object``/``array`` from
    ``properties``/``items`` when ``type`` is missing.
    """
    if not isinstance(schema, dict):
        return "string"

    type_value = schema.get("type")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        type_value = non_null[0] if non_null else None

    if isinstance(type_value, str):
        return type_value
    if "properties" in schema:
        return "object"
    if "items" in schema:
        return "array"
    return "string"
