"""Run the registered link dialects and make every link absolute."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional
from urllib.parse import urljoin

from hypercli.exceptions import LinkDialectError
from hypercli.links.parsers import (
    HALParser,
    LinkHeaderParser,
    LinkParser,
    SelfLinkParser,
    SirenParser,
)
from hypercli.models import Links, ParsedResponse

logger = logging.getLogger(__name__)


class LinkResolver:
    """An ordered registry of link dialects.

    Parsers run in registration order against the same response and merge
    into one :data:`~hypercli.models.Links` mapping.  The first parser to
    raise aborts resolution.  The registry is frozen by the first call to
    :meth:`resolve`.

    Example::

        resolver = LinkResolver([LinkHeaderParser(), HALParser()])
        links = resolver.resolve("https://api.example.com/widgets", body)
    """

    def __init__(self, parsers: Iterable[LinkParser] = ()) -> None:
        self._parsers: list[LinkParser] = list(parsers)
        self._frozen = False

    @property
    def parsers(self) -> tuple[LinkParser, ...]:
        return tuple(self._parsers)

    def register(self, parser: LinkParser) -> None:
        """Append a dialect.

        Raises:
            RuntimeError: If links have already been resolved with this registry.
        """
        if self._frozen:
            raise RuntimeError("Link parsers cannot be registered after the first resolve")
        self._parsers.append(parser)

    def resolve(self, base_uri: str, response: Any) -> Links:
        """Return the links of *response*, resolved against *base_uri*.

        Args:
            base_uri: URI of the request that produced the response.
            response: A :class:`~hypercli.models.ParsedResponse`, or a bare
                decoded body.

        Raises:
            LinkDialectError: If a dialect finds malformed input.
        """
        self._frozen = True

        if not isinstance(response, ParsedResponse):
            response = ParsedResponse(uri=base_uri, body=response)

        links: Links = {}
        for parser in self._parsers:
            parser.parse_links(response, links)

        for rel_links in links.values():
            for link in rel_links:
                link.uri = _absolute(base_uri, link.uri)

        logger.debug("Resolved %d relation(s) for %s", len(links), base_uri)
        return links


def _absolute(base_uri: str, uri: str) -> str:
    try:
        return urljoin(base_uri, uri)
    except ValueError as exc:
        raise LinkDialectError(f"Cannot resolve link {uri!r} against {base_uri}: {exc}") from exc


_default_resolver: Optional[LinkResolver] = None


def default_link_resolver() -> LinkResolver:
    """Return the process-wide resolver with the built-in dialects.

    The dialects run in this order: link header, HAL, Siren, self-link walk.
    """
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = LinkResolver(
            [LinkHeaderParser(), HALParser(), SirenParser(), SelfLinkParser()]
        )
    return _default_resolver


def resolve_links(
    response: ParsedResponse,
    resolver: Optional[LinkResolver] = None,
) -> ParsedResponse:
    """Fill ``response.links`` in place and return the response."""
    resolver = resolver or default_link_resolver()
    response.links = resolver.resolve(response.uri, response)
    return response
