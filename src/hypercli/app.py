"""Typer application factory and CLI entry point for hypercli.

:func:`create_app` builds the root Typer application, registers the built-in
sub-commands (``config``, ``inspect``) and, when the command line asks for
``api``, compiles the active profile's API description into the generated
``api`` command group.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers, builds the app and invokes
it.  :class:`~hypercli.exceptions.HypercliError` exits with the error's
code; anything else is written to a crash log under the data directory.

See Also:
    :mod:`hypercli.config`: Profile and global configuration resolution.
    :mod:`hypercli.output`: Output formatting initialised in the root callback.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

import click
import httpx
import typer

from hypercli import __version__
from hypercli.exceptions import ConfigError, HypercliError
from hypercli.exit_codes import EXIT_GENERIC_FAILURE
from hypercli.models import GlobalConfig, Profile, Request

API_GROUP = "api"

logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"hypercli {__version__}")
        raise typer.Exit()


def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print requests instead of sending them."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~hypercli.output.OutputManager` and the
    logging handler, and stores shared options in ``ctx.obj`` for the
    sub-commands.  Without ``--json`` or ``--plain`` the format comes from
    ``output.format`` in the global config.
    """
    from hypercli.config import load_global_config
    from hypercli.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(load_global_config().output.format)
        except ValueError:
            fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose=verbose, no_color=no_color)

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["dry_run"] = dry_run
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def create_app(
    argv: Optional[Sequence[str]] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> typer.Typer:
    """Build the root application for one invocation.

    Args:
        argv: The command-line arguments (without the program name).  The
            API description is only loaded when they select the ``api``
            group, so built-in commands never touch the network.
        transport: Optional :mod:`httpx` transport for generated commands,
            e.g. :class:`httpx.MockTransport` in tests.
    """
    from hypercli.commands.config import config_app
    from hypercli.commands.inspect import inspect_app

    app = typer.Typer(
        name="hypercli",
        help="Call any HTTP API described by OpenAPI 3 from the command line.",
        no_args_is_help=True,
        add_completion=False,
        rich_markup_mode="rich",
    )
    app.callback()(main_callback)
    app.add_typer(config_app, name="config", help="Profiles and configuration.")
    app.add_typer(inspect_app, name="inspect", help="Inspect the active API.")

    command, cli_profile = _scan_argv(list(argv if argv is not None else sys.argv[1:]))
    if command == API_GROUP:
        _load_dynamic_commands(app, cli_profile, transport)
    else:
        _register_api_placeholder(app, None)
    return app


def _scan_argv(argv: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Return ``(first command, --profile value)`` from raw arguments."""
    profile: Optional[str] = None
    idx = 0
    while idx < len(argv):
        arg = argv[idx]
        if arg in ("--profile", "-p"):
            if idx + 1 < len(argv):
                profile = argv[idx + 1]
            idx += 2
            continue
        if arg.startswith("--profile="):
            profile = arg.split("=", 1)[1]
        elif not arg.startswith("-"):
            return arg, profile
        idx += 1
    return None, profile


def _load_dynamic_commands(
    app: typer.Typer,
    cli_profile: Optional[str],
    transport: Optional[httpx.BaseTransport],
) -> None:
    """Compile the active profile's API and attach it as the ``api`` group.

    A failure to resolve the profile or load the description does not stop
    the built-in commands: the ``api`` group is replaced by a command that
    reports the failure when it is invoked.
    """
    from hypercli.config import resolve_config
    from hypercli.generator import build_command_tree
    from hypercli.session import load_api, open_cache

    try:
        config, profile = resolve_config(cli_profile=cli_profile)
        if profile is None:
            raise ConfigError("No active profile. Run: hypercli config add NAME ENTRYPOINT")

        cache = open_cache(config)
        try:
            api = load_api(profile, cache)
        finally:
            cache.close()
    except HypercliError as exc:
        logger.debug("API commands unavailable: %s", exc)
        _register_api_placeholder(app, exc)
        return

    api_app = build_command_tree(api, _make_executor(profile, config, transport), name=API_GROUP)
    app.add_typer(
        api_app,
        name=API_GROUP,
        help=f"Operations of {api.title or profile.entrypoint}.",
    )


def _register_api_placeholder(app: typer.Typer, exc: Optional[HypercliError]) -> None:
    """Register an ``api`` command that raises *exc* (or just lists in help)."""

    @app.command(
        API_GROUP,
        help="Operations of the active profile's API.",
        context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
        add_help_option=False,
    )
    def api_unavailable() -> None:
        raise exc or ConfigError("API commands were not loaded")


def _make_executor(
    profile: Profile,
    config: GlobalConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> Callable[[Request], None]:
    """Return the callback that sends requests built by generated commands."""
    from hypercli.client import SyncClient, format_api_response
    from hypercli.config import resolve_header_values

    def _execute(request: Request) -> None:
        ctx = click.get_current_context(silent=True)
        obj = ctx.find_root().obj if ctx is not None else None
        dry_run = bool(obj and obj.get("dry_run"))

        effective = profile.model_copy(
            update={"headers": resolve_header_values(profile.headers)}
        )
        with SyncClient(effective, dry_run=dry_run, transport=transport) as client:
            response = client.send(request)

        if not dry_run:
            format_api_response(response, show_links=config.output.show_links)

    return _execute


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under the data directory and return its path."""
    from hypercli.config import get_data_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_data_dir() / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``hypercli`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app = create_app(sys.argv[1:])
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except HypercliError as exc:
        from hypercli.output import error

        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        from hypercli.output import error

        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
