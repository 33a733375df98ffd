"""Build the Typer command group for a compiled API.

Every :class:`~hypercli.models.Operation` becomes one sub-command named
after :attr:`~hypercli.models.Operation.name`.  Aliases are registered as
hidden duplicates, and hidden operations stay invocable but are left out of
``--help`` listings.

Each command is a dynamically generated function whose signature matches
the operation's parameters: path parameters first as positional arguments,
then a trailing variadic ``BODY...`` argument when the operation accepts a
request body, and one ``--option`` per query or header parameter.  When
invoked, the function binds the values by wire name, builds the request with
:func:`~hypercli.generator.request_builder.build_request` and hands it to
the executor callback.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Optional

import typer

from hypercli.generator.param_mapper import (
    build_body_argument,
    map_parameter_to_typer,
    sanitize_param_name,
)
from hypercli.generator.request_builder import build_request
from hypercli.models import API, Operation, ParameterLocation, Request

Executor = Callable[[Request], Any]


def build_command_tree(
    api: API,
    executor: Optional[Executor] = None,
    *,
    name: str = "api",
) -> typer.Typer:
    """Build a :class:`typer.Typer` group with one command per operation.

    Args:
        api: The compiled API.
        executor: Called with the built :class:`~hypercli.models.Request`
            when a command runs.  When ``None``, commands print a dry-run
            summary to stdout instead of sending anything.
        name: Name of the returned group.

    Example::

        app = build_command_tree(api, executor=client.send)
        app(["list-pets", "--limit", "5"])
    """
    app = typer.Typer(
        name=name,
        help=api.description or api.title or "API operations.",
        no_args_is_help=True,
    )

    for operation in api.operations:
        cmd_fn = _build_command_function(operation, executor)
        help_text = _build_help_text(operation)
        epilog = _build_epilog(operation)

        app.command(
            name=operation.name,
            help=help_text,
            short_help=operation.short_description or None,
            epilog=epilog,
            hidden=operation.hidden,
        )(cmd_fn)

        for alias in operation.aliases:
            app.command(name=alias, help=help_text, epilog=epilog, hidden=True)(cmd_fn)

    return app


# ---------------------------------------------------------------------------
# Dynamic command function builder
# ---------------------------------------------------------------------------


def _build_command_function(
    operation: Operation,
    executor: Optional[Executor],
) -> Callable[..., Any]:
    """Dynamically generate a Typer-compatible function for *operation*.

    The function source is built as a string, compiled, and executed into
    a namespace so that :mod:`inspect` (which Typer relies on) can read its
    signature.
    """
    params = [*operation.path_params, *operation.query_params, *operation.header_params]
    param_descriptors: list[dict[str, Any]] = [map_parameter_to_typer(p) for p in params]
    if operation.body_media_type:
        param_descriptors.append(build_body_argument())

    _dedupe_names(param_descriptors)

    func_name = f"_cmd_{sanitize_param_name(operation.name)}"

    # Positional arguments first (path params, then the body), then options.
    arguments = [d for d in param_descriptors if d["is_argument"]]
    options = [d for d in param_descriptors if not d["is_argument"]]

    namespace: dict[str, Any] = {}
    sig_parts: list[str] = []

    for idx, desc in enumerate(arguments):
        sentinel = f"_default_arg_{idx}"
        namespace[sentinel] = desc["default"]
        ann = f"_ann_arg_{idx}"
        namespace[ann] = desc["type"]
        sig_parts.append(f"{desc['name']}: {ann} = {sentinel}")

    for idx, desc in enumerate(options):
        sentinel = f"_default_opt_{idx}"
        namespace[sentinel] = desc["default"]
        ann = f"_ann_opt_{idx}"
        namespace[ann] = desc["type"]
        sig_parts.append(f"{desc['name']}: {ann} = {sentinel}")

    sig = ", ".join(sig_parts)

    # Sanitised parameter names never start with "_" and a letter, so these
    # locals cannot shadow a parameter.
    body_lines = [
        "    _path_args = []",
        "    _query = {}",
        "    _headers = {}",
        "    _body_args = []",
    ]
    for desc in param_descriptors:
        py_name = desc["name"]
        orig_name = desc["original_name"]
        location = desc["location"]
        if orig_name == "__body__":
            body_lines.append(f"    _body_args = list({py_name} or [])")
        elif location == ParameterLocation.PATH:
            body_lines.append(f"    _path_args.append({py_name})")
        elif location == ParameterLocation.QUERY:
            body_lines.append(f"    _query[{orig_name!r}] = {py_name}")
        else:
            body_lines.append(f"    _headers[{orig_name!r}] = {py_name}")
    body_lines.append("    return _dispatch(_path_args, _query, _headers, _body_args)")

    source = f"def {func_name}({sig}):\n" + "\n".join(body_lines) + "\n"

    namespace["_dispatch"] = _make_dispatch(operation, executor)

    code = compile(source, f"<hypercli:{operation.name}>", "exec")
    exec(code, namespace)  # noqa: S102 -- controlled code generation
    fn = namespace[func_name]

    fn.__doc__ = _build_help_text(operation)
    fn.__name__ = func_name
    fn.__qualname__ = func_name

    return fn


def _dedupe_names(descriptors: list[dict[str, Any]]) -> None:
    """Suffix Python names that collide (e.g. a query and a header ``id``)."""
    seen: set[str] = set()
    for desc in descriptors:
        name = desc["name"]
        candidate = name
        counter = 2
        while candidate in seen:
            candidate = f"{name}_{counter}"
            counter += 1
        desc["name"] = candidate
        seen.add(candidate)


# ---------------------------------------------------------------------------
# Dispatch helper
# ---------------------------------------------------------------------------


def _make_dispatch(
    operation: Operation,
    executor: Optional[Executor],
) -> Callable[..., Any]:
    """Return the function the generated command calls with its bound values."""

    def _dispatch(
        path_args: list[str],
        query: dict[str, Any],
        headers: dict[str, Any],
        body_args: list[str],
    ) -> Any:
        request = build_request(
            operation,
            path_args,
            query,
            headers,
            body_args,
            stdin=sys.stdin if operation.body_media_type else None,
        )
        if executor is not None:
            return executor(request)

        summary = f"{request.method} {request.uri}"
        if request.headers:
            summary += f"\n  headers: {json.dumps(request.headers)}"
        if request.body:
            summary += f"\n  body: {request.body[:200]}"
        typer.echo(summary)
        return None

    return _dispatch


# ---------------------------------------------------------------------------
# Help / display helpers
# ---------------------------------------------------------------------------


def _build_help_text(operation: Operation) -> str:
    """Compose a CLI help string for *operation*.

    Multi-line paragraphs (schema outlines) are marked so that Click and
    Typer keep their line breaks.
    """
    parts: list[str] = []
    if operation.short_description:
        parts.append(operation.short_description)

    for paragraph in operation.long_description.strip().split("\n\n"):
        paragraph = paragraph.strip("\n")
        if not paragraph:
            continue
        if "\n" in paragraph:
            paragraph = "\b\n" + paragraph
        parts.append(paragraph)

    if not parts:
        return f"{operation.method} {operation.uri_template}"
    return "\n\n".join(parts)


def _build_epilog(operation: Operation) -> Optional[str]:
    if not operation.examples:
        return None
    lines = [f"hypercli api {operation.name} {example}" for example in operation.examples]
    return "Examples:\n\n\b\n" + "\n".join(lines)
