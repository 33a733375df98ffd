"""Inspect commands -- read-only views over the compiled API.

Provides the ``hypercli inspect`` sub-command group:

* ``operations`` -- every compiled operation with its method and URI.
* ``operation NAME`` -- the full documentation of one operation.
* ``links SOURCE`` -- the hypermedia links found in a stored or fetched
  response, without going through a generated command.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

from hypercli.output import error, get_output, print_table


inspect_app = typer.Typer(no_args_is_help=True)


def _load_api_from_profile(ctx: typer.Context, refresh: bool = False):  # noqa: ANN202
    """Load the compiled API of the active profile.

    Raises:
        typer.Exit: With code 2 when no profile can be resolved.
    """
    from hypercli.config import resolve_config
    from hypercli.session import load_api, open_cache

    profile_name = ctx.obj.get("profile") if ctx.obj else None
    config, profile = resolve_config(cli_profile=profile_name)
    if profile is None:
        error("No active profile. Run: hypercli config add NAME ENTRYPOINT")
        raise typer.Exit(code=2)

    cache = open_cache(config)
    try:
        return load_api(profile, cache, refresh=refresh)
    finally:
        cache.close()


@inspect_app.command("operations")
def inspect_operations(
    ctx: typer.Context,
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Include hidden operations."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", help="Reload the description instead of using the cache."
    ),
) -> None:
    """List the operations of the active API.

    Example::

        hypercli inspect operations
        hypercli --json inspect operations --all
    """
    api = _load_api_from_profile(ctx, refresh)

    rows: list[list[str]] = []
    for op in api.operations:
        if op.hidden and not show_all:
            continue
        rows.append([op.name, op.method, op.uri_template, op.short_description or "-"])

    title = f"{api.title or 'API'} -- Operations ({len(rows)})"
    print_table(["Name", "Method", "URI", "Summary"], rows, title=title)


@inspect_app.command("operation")
def inspect_operation(
    ctx: typer.Context,
    name: str = typer.Argument(help="Operation name or alias."),
) -> None:
    """Show the documentation of one operation."""
    from hypercli.models import ParameterLocation

    api = _load_api_from_profile(ctx)
    op = api.find(name)
    if op is None:
        error(f"Unknown operation: {name}")
        raise typer.Exit(code=2)

    lines = [f"# {op.name}", "", f"`{op.method} {op.uri_template}`", ""]
    if op.aliases:
        lines += [f"Aliases: {', '.join(op.aliases)}", ""]
    if op.short_description:
        lines += [op.short_description, ""]

    params = [*op.path_params, *op.query_params, *op.header_params]
    if params:
        lines += ["## Parameters", ""]
        for p in params:
            flag = p.cli_name.upper() if p.location == ParameterLocation.PATH else f"--{p.cli_name}"
            entry = f"- `{flag}` ({p.location.value}, {p.type})"
            if p.required:
                entry += " required"
            if p.description:
                entry += f": {p.description}"
            lines.append(entry)
        lines.append("")

    if op.long_description:
        lines.append(op.long_description.strip())

    get_output().print_markdown("\n".join(lines))


@inspect_app.command("links")
def inspect_links(
    source: str = typer.Argument(help="URL to fetch, or a JSON/YAML file."),
    base: Optional[str] = typer.Option(
        None, "--base", help="Base URI for relative links (defaults to SOURCE)."
    ),
) -> None:
    """List the hypermedia links of a response.

    A URL is fetched with a plain GET; a file is read as the response body.

    Example::

        hypercli inspect links https://api.example.com/items/1
        hypercli inspect links saved.json --base https://api.example.com/items/
    """
    from hypercli.links import default_link_resolver
    from hypercli.models import ParsedResponse

    if source.startswith(("http://", "https://")):
        response = _fetch(source)
    else:
        response = ParsedResponse(uri=Path(source).resolve().as_uri(), body=_read_body(source))

    links = default_link_resolver().resolve(base or response.uri, response)
    rows = [[rel, link.uri] for rel, rel_links in links.items() for link in rel_links]
    print_table(["Rel", "URI"], rows, title=f"Links ({len(rows)})")


def _fetch(url: str):  # noqa: ANN202
    import httpx

    from hypercli.client import decode_response
    from hypercli.exceptions import ConnectionError_

    try:
        response = httpx.get(url, follow_redirects=True, timeout=30.0)
    except httpx.RequestError as exc:
        raise ConnectionError_(f"Failed to fetch {url}: {exc}") from exc
    return decode_response(response)


def _read_body(path: str) -> Any:
    import yaml

    from hypercli.exceptions import InvalidUsageError

    file_path = Path(path)
    if not file_path.is_file():
        raise InvalidUsageError(f"File not found: {path}")

    text = file_path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidUsageError(f"{path} is neither JSON nor YAML: {exc}") from exc
