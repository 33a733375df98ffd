"""Built-in hypermedia link dialects.

Each parser looks at one :class:`~hypercli.models.ParsedResponse` and adds
the relations it understands to a shared :data:`~hypercli.models.Links`
mapping.  A parser whose shape is absent from the response adds nothing and
does not complain; only syntax errors inside a recognised shape raise
:class:`~hypercli.exceptions.LinkDialectError`.

* :class:`LinkHeaderParser` -- ``Link: <uri>; rel="next"`` response headers.
* :class:`HALParser` -- ``{"_links": {"rel": {"href": ...}}}`` bodies.
* :class:`SirenParser` -- ``{"links": [{"rel": [...], "href": ...}]}`` bodies.
* :class:`SelfLinkParser` -- any ``"self"`` key anywhere in the body.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from hypercli.exceptions import LinkDialectError
from hypercli.models import Link, Links, ParsedResponse

logger = logging.getLogger(__name__)


class LinkParser(Protocol):
    """One link dialect."""

    def parse_links(self, response: ParsedResponse, links: Links) -> None: ...


def add_link(links: Links, rel: str, uri: str) -> None:
    """Append a link under *rel*, keeping duplicates and discovery order."""
    links.setdefault(rel, []).append(Link(rel=rel, uri=uri))


# ---------------------------------------------------------------------------
# Link header
# ---------------------------------------------------------------------------

# One ``; name=value`` link parameter. Values are tokens or quoted strings.
_LINK_PARAM_RE = re.compile(
    r"""\s*([!#$%&'*+\-.^_`|~0-9A-Za-z]+\*?)\s*"""
    r"""(?:=\s*(?:"((?:[^"\\]|\\.)*)"|([^\s;,"]*)))?"""
)


def parse_link_header(value: str) -> list[tuple[str, str]]:
    """Parse a ``Link`` header into ``(rel, uri)`` pairs.

    A link with several space-separated relation types yields one pair per
    type.  Links without a ``rel`` parameter are skipped.

    Raises:
        LinkDialectError: If the header does not follow the
            ``<uri>; param=value, ...`` syntax.
    """
    pairs: list[tuple[str, str]] = []
    pos = 0
    end = len(value)

    while pos < end:
        while pos < end and value[pos] in " \t,":
            pos += 1
        if pos >= end:
            break

        if value[pos] != "<":
            raise LinkDialectError(
                f"Malformed Link header: expected '<' at position {pos} in {value!r}"
            )
        close = value.find(">", pos)
        if close == -1:
            raise LinkDialectError(f"Malformed Link header: unterminated URI in {value!r}")
        uri = value[pos + 1:close].strip()
        pos = close + 1

        params: dict[str, str] = {}
        while True:
            while pos < end and value[pos] in " \t":
                pos += 1
            if pos >= end or value[pos] == ",":
                break
            if value[pos] != ";":
                raise LinkDialectError(
                    f"Malformed Link header: expected ';' or ',' at position {pos} in {value!r}"
                )
            match = _LINK_PARAM_RE.match(value, pos + 1)
            if match is None:
                raise LinkDialectError(
                    f"Malformed Link header: bad parameter at position {pos + 1} in {value!r}"
                )
            name = match.group(1).lower()
            if match.group(2) is not None:
                param_value = re.sub(r"\\(.)", r"\1", match.group(2))
            else:
                param_value = match.group(3) or ""
            # The first occurrence of a parameter wins.
            params.setdefault(name, param_value)
            pos = match.end()

        for rel in params.get("rel", "").split():
            pairs.append((rel, uri))

    return pairs


class LinkHeaderParser:
    """Links from the ``Link`` response header."""

    def parse_links(self, response: ParsedResponse, links: Links) -> None:
        header = response.headers.get("link", "")
        if not header:
            return
        for rel, uri in parse_link_header(header):
            add_link(links, rel, uri)


# ---------------------------------------------------------------------------
# Body dialects
# ---------------------------------------------------------------------------


class HALParser:
    """Links from a HAL ``_links`` object.  The ``curies`` relation is skipped."""

    def parse_links(self, response: ParsedResponse, links: Links) -> None:
        body = response.body
        if not isinstance(body, dict) or not isinstance(body.get("_links"), dict):
            return

        for rel, value in body["_links"].items():
            if rel == "curies":
                continue
            entries = value if isinstance(value, list) else [value]
            for entry in entries:
                if isinstance(entry, dict) and isinstance(entry.get("href"), str):
                    add_link(links, str(rel), entry["href"])


class SirenParser:
    """Links from a Siren ``links`` list.  Entries with an empty ``href`` are skipped."""

    def parse_links(self, response: ParsedResponse, links: Links) -> None:
        body = response.body
        if not isinstance(body, dict) or not isinstance(body.get("links"), list):
            return

        for entry in body["links"]:
            if not isinstance(entry, dict):
                continue
            href = entry.get("href")
            if not isinstance(href, str) or not href:
                continue
            rels = entry.get("rel")
            if isinstance(rels, str):
                rels = [rels]
            if not isinstance(rels, list):
                continue
            for rel in rels:
                if isinstance(rel, str):
                    add_link(links, rel, href)


class SelfLinkParser:
    """Links from every ``"self"`` key found anywhere in the body.

    The relation name is the dotted path of the keys enclosing the ``self``
    entry (``"self"`` at the top level).  Entering a list appends ``-item``
    to the current path instead of an index, so every element of
    ``{"items": [{"self": ...}, ...]}`` contributes to ``items-item``.

    The walk uses an explicit stack and does not descend past *max_depth*
    levels.  Only scalar ``self`` values (strings and numbers) are recorded.
    """

    def __init__(self, max_depth: int = 64) -> None:
        self.max_depth = max_depth

    def parse_links(self, response: ParsedResponse, links: Links) -> None:
        stack: list[tuple[str, Any, int]] = [("", response.body, 0)]

        while stack:
            path, node, depth = stack.pop()
            if depth > self.max_depth:
                logger.debug("Self-link walk stopped at depth %d (%s)", depth, path)
                continue

            children: list[tuple[str, Any, int]] = []
            if isinstance(node, dict):
                for key, value in node.items():
                    key = str(key)
                    if key == "self":
                        uri = _scalar_text(value)
                        if uri is not None:
                            add_link(links, path or "self", uri)
                        continue
                    children.append((f"{path}.{key}" if path else key, value, depth + 1))
            elif isinstance(node, (list, tuple)):
                item_path = f"{path or 'self'}-item"
                children = [(item_path, item, depth + 1) for item in node]

            # Reversed so that items pop off the stack in document order.
            stack.extend(reversed(children))


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None
