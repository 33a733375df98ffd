"""Hypermedia link discovery.

Typical usage::

    from hypercli.links import resolve_links

    resolve_links(parsed_response)
    for rel, links in parsed_response.links.items():
        print(rel, [link.uri for link in links])
"""

from hypercli.links.parsers import (
    HALParser,
    LinkHeaderParser,
    LinkParser,
    SelfLinkParser,
    SirenParser,
    parse_link_header,
)
from hypercli.links.resolver import LinkResolver, default_link_resolver, resolve_links

__all__ = [
    "LinkResolver",
    "LinkParser",
    "LinkHeaderParser",
    "HALParser",
    "SirenParser",
    "SelfLinkParser",
    "default_link_resolver",
    "parse_link_header",
    "resolve_links",
]
