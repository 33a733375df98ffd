"""Render one compiled operation plus bound argument values into a request."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence, TextIO
from urllib.parse import quote, urlencode

from hypercli.exceptions import InvalidUsageError
from hypercli.generator.body import build_body
from hypercli.generator.serializer import parse_value, serialize, should_send
from hypercli.models import Operation, Request

BodyBuilder = Callable[[str, Sequence[str], Optional[TextIO]], Optional[str]]


def build_request(
    operation: Operation,
    path_args: Sequence[Any],
    query_values: Optional[Mapping[str, Any]] = None,
    header_values: Optional[Mapping[str, Any]] = None,
    body_args: Sequence[str] = (),
    *,
    stdin: Optional[TextIO] = None,
    body_builder: BodyBuilder = build_body,
) -> Request:
    """Build the outgoing :class:`~hypercli.models.Request` for *operation*.

    Args:
        operation: The compiled operation.
        path_args: One value per path parameter, in declaration order.
            Strings are parsed with the parameter's type first.
        query_values: Bound query values keyed by wire name.
        header_values: Bound header values keyed by wire name.
        body_args: Remaining positional arguments, handed to *body_builder*.
        stdin: Piped input for the body builder.
        body_builder: Produces the body text from the media type, the body
            arguments and stdin.

    Raises:
        InvalidUsageError: On a wrong number of path arguments, or body
            arguments for an operation without a body.
        ParameterParseError: If a path argument does not match its type.
    """
    if len(path_args) != len(operation.path_params):
        expected = ", ".join(p.cli_name for p in operation.path_params) or "none"
        raise InvalidUsageError(
            f"{operation.name} expects {len(operation.path_params)} path "
            f"argument(s) ({expected}), got {len(path_args)}"
        )

    uri = operation.uri_template
    for param, raw in zip(operation.path_params, path_args):
        value = parse_value(param, raw) if isinstance(raw, str) else raw
        wire = serialize(param, value)
        encoded = quote(wire[0] if wire else "", safe=",")
        for placeholder in ("{" + param.name + "}", "%7B" + param.name + "%7D"):
            uri = uri.replace(placeholder, encoded)

    query_values = query_values or {}
    pairs: list[tuple[str, str]] = []
    for param in sorted(operation.query_params, key=lambda p: p.name):
        value = query_values.get(param.name)
        if should_send(param, value):
            pairs.extend((param.name, text) for text in serialize(param, value))
    if pairs:
        uri += ("&" if "?" in uri else "?") + urlencode(pairs)

    header_values = header_values or {}
    headers: dict[str, list[str]] = {}
    for param in operation.header_params:
        value = header_values.get(param.name)
        if should_send(param, value):
            headers[param.name] = serialize(param, value)

    body: Optional[str] = None
    if operation.body_media_type:
        body = body_builder(operation.body_media_type, list(body_args), stdin)
    elif body_args:
        raise InvalidUsageError(
            f"{operation.name} does not take a request body, "
            f"unexpected arguments: {' '.join(body_args)}"
        )

    return Request(
        method=operation.method,
        uri=uri,
        headers=headers,
        body=body,
        media_type=operation.body_media_type if body is not None else None,
    )
