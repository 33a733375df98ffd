"""Reference and URI resolution for API descriptions.

Two kinds of resolution happen before and during compilation:

* **``$ref`` pointers** -- OpenAPI documents commonly use JSON References
  (e.g. ``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition.
  :func:`resolve_refs` performs a deep-copy traversal that replaces every
  internal reference with the object it points to.  External references
  raise :class:`~hypercli.exceptions.DescriptionParseError`; circular
  references are left unresolved at the cycle point.

* **Path templates** -- the compiler never builds absolute URIs itself.
  It hands ``basePath + pathTemplate`` to a :class:`URIResolver`;
  :class:`DescriptionResolver` is the default implementation, resolving
  against the API entrypoint (or, for a relative entrypoint, the location
  the description was loaded from).
"""

from __future__ import annotations

import copy
from typing import Any, Protocol
from urllib.parse import urljoin, urlsplit

from hypercli.exceptions import DescriptionParseError, ResolutionError


class URIResolver(Protocol):
    """Turns a relative URI into an absolute one."""

    def resolve(self, uri: str) -> str: ...


class DescriptionResolver:
    """Resolve relative URIs against an API entrypoint.

    Args:
        entrypoint: Base URL of the API (what the user configured).
        location: Where the description document itself was loaded from.
            A relative entrypoint (e.g. ``/api``) is made absolute against
            it when it is an ``http(s)`` URL.
    """

    def __init__(self, entrypoint: str, location: str | None = None) -> None:
        self.entrypoint = entrypoint
        self.location = location or entrypoint
        self.base = _absolute_base(entrypoint, self.location)

    def resolve(self, uri: str) -> str:
        try:
            return urljoin(self.base, uri)
        except ValueError as exc:
            raise ResolutionError(
                f"Cannot resolve {uri!r} against {self.base}: {exc}"
            ) from exc


def _absolute_base(entrypoint: str, location: str) -> str:
    try:
        if urlsplit(entrypoint).scheme:
            return entrypoint
        if urlsplit(location).scheme in ("http", "https"):
            return urljoin(location, entrypoint)
    except ValueError as exc:
        raise ResolutionError(f"Cannot resolve entrypoint {entrypoint!r}: {exc}") from exc
    return entrypoint


def resolve_refs(document: dict[str, Any]) -> dict[str, Any]:
    """Resolve all ``$ref`` JSON Reference pointers in the document.

    Creates a deep copy of the input and recursively replaces every
    ``{"$ref": "#/..."}`` dict with the object it points to.

    Circular references are detected and left unresolved (the ``$ref`` dict
    is kept as-is at the cycle point) to prevent infinite recursion.

    Args:
        document: The raw description dictionary.

    Returns:
        A **new** dictionary with all resolvable ``$ref`` pointers replaced
        by their target objects.

    Raises:
        DescriptionParseError: If a ``$ref`` points to a non-existent path
            within the document, or if an external reference is encountered.
    """
    root = copy.deepcopy(document)
    return _deep_resolve(root, root, seen=None)


def _resolve_ref(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the root document.

    Handles RFC 6901 JSON Pointer escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Raises:
        DescriptionParseError: If the reference is external or dangling.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise DescriptionParseError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise DescriptionParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise DescriptionParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise DescriptionParseError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


def _deep_resolve(obj: Any, root: dict[str, Any], seen: set[str] | None = None) -> Any:
    """Recursively resolve all ``$ref`` pointers within *obj*.

    ``seen`` holds the references on the current resolution stack.  A
    **copy** is made at each branch so that sibling references do not
    interfere with each other.
    """
    if seen is None:
        seen = set()

    if isinstance(obj, dict):
        if "$ref" in obj:
            ref = obj["$ref"]
            if not isinstance(ref, str):
                raise DescriptionParseError(f"Malformed $ref value: {ref!r}")
            if ref in seen:
                return obj
            seen = seen | {ref}
            return _deep_resolve(_resolve_ref(ref, root), root, seen)

        return {key: _deep_resolve(value, root, seen) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, seen) for item in obj]

    return obj
