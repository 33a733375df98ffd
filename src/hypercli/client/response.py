"""Response decoding bridge -- maps :class:`httpx.Response` to the output system.

After an HTTP call completes, :func:`decode_response` turns the raw
response into a :class:`~hypercli.models.ParsedResponse` (decoded body,
flattened headers) and :func:`format_api_response` resolves its hypermedia
links and renders it: the status line and links go to stderr, the body to
stdout.

See Also:
    :mod:`hypercli.output` -- the output manager that renders data.
    :mod:`hypercli.links` -- link discovery.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import yaml

from hypercli.exceptions import LinkDialectError
from hypercli.links import LinkResolver, resolve_links
from hypercli.models import ParsedResponse
from hypercli.output import get_output


def decode_response(response: httpx.Response) -> ParsedResponse:
    """Decode *response* into a :class:`~hypercli.models.ParsedResponse`.

    The body is decoded as JSON when the content type says so (or when it
    parses as JSON), as YAML for YAML content types, and kept as text
    otherwise.  Empty bodies decode to ``None``.  Repeated headers are
    joined with ``", "``.
    """
    headers: dict[str, str] = {}
    for name, value in response.headers.multi_items():
        key = name.lower()
        headers[key] = f"{headers[key]}, {value}" if key in headers else value

    return ParsedResponse(
        status=response.status_code,
        uri=str(response.request.url) if _has_request(response) else "",
        headers=headers,
        body=extract_response_data(response),
    )


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the decoded body from an HTTP response."""
    if not response.content:
        return None

    content_type = response.headers.get("content-type", "")
    text = response.text

    if "yaml" in content_type:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError:
            return text

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def format_api_response(
    response: httpx.Response,
    show_links: bool = True,
    resolver: Optional[LinkResolver] = None,
) -> ParsedResponse:
    """Decode, link-resolve and print an API response.

    Link resolution failures are reported as a warning; the body is still
    printed.
    """
    output = get_output()
    parsed = decode_response(response)

    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())

    try:
        resolve_links(parsed, resolver)
    except LinkDialectError as exc:
        output.warning(f"Could not resolve links: {exc}")

    if parsed.body is not None:
        output.format_response(parsed.body, parsed.headers.get("content-type", "application/json"))

    if show_links:
        output.print_links(parsed.links)

    return parsed


def _has_request(response: httpx.Response) -> bool:
    try:
        response.request
    except RuntimeError:
        return False
    return True
