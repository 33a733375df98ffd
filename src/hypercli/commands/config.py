"""Config commands -- manage API profiles and the global configuration.

Provides the ``hypercli config`` sub-command group.  Profiles
(:class:`~hypercli.models.Profile`) name the APIs hypercli talks to; the
global configuration (:class:`~hypercli.models.GlobalConfig`) holds the
default profile, output preferences and cache settings.
"""

from __future__ import annotations

from typing import Optional

import typer

from hypercli.output import error, format_response, info, print_table, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("profiles")
def config_profiles() -> None:
    """List stored profiles.

    The default profile is marked with ``*``.

    Example::

        hypercli config profiles
    """
    from hypercli.config import list_profiles, load_global_config, load_profile

    config = load_global_config()
    rows: list[list[str]] = []
    for name in list_profiles():
        profile = load_profile(name)
        marker = "*" if name == config.default_profile else ""
        rows.append([marker, name, profile.entrypoint, profile.description or "-"])

    if not rows:
        info("No profiles. Run: hypercli config add NAME ENTRYPOINT")
        return
    print_table(["", "Name", "Entrypoint", "Description"], rows, title="Profiles")


@config_app.command("add")
def config_add(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    entrypoint: str = typer.Argument(help="Base URL of the API."),
    description: Optional[str] = typer.Option(
        None, "--description", "-d",
        help="URL or file path of the OpenAPI description (discovered when omitted).",
    ),
    header: list[str] = typer.Option(
        [], "--header", "-H",
        help="Default header as NAME:VALUE. Values may be env:VAR or file:PATH.",
    ),
    set_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
) -> None:
    """Create or replace a profile.

    Example::

        hypercli config add petstore https://petstore.example.com
        hypercli config add gh https://api.github.com -H "Authorization:env:GH_TOKEN"
    """
    from hypercli.config import (
        load_global_config,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from hypercli.models import Profile

    force = ctx.obj.get("force", False) if ctx.obj else False
    if profile_exists(name) and not force:
        if not typer.confirm(f"Profile '{name}' exists. Replace it?"):
            info("Cancelled.")
            raise typer.Exit()

    headers: dict[str, str] = {}
    for item in header:
        key, sep, value = item.partition(":")
        if not sep or not key.strip():
            error(f"Invalid header {item!r}, expected NAME:VALUE")
            raise typer.Exit(code=2)
        headers[key.strip()] = value.strip()

    save_profile(
        Profile(name=name, entrypoint=entrypoint, description=description, headers=headers)
    )

    if set_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)

    success(f"Profile '{name}' saved.")


@config_app.command("remove")
def config_remove(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Delete a profile.

    Clears ``default_profile`` when it pointed at the removed profile.
    """
    from hypercli.config import delete_profile, load_global_config, save_global_config

    delete_profile(name)

    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)

    success(f"Profile '{name}' removed.")


@config_app.command("show")
def config_show() -> None:
    """Show the global configuration."""
    from hypercli.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'output.format')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys.  The value is coerced to the type of
    the current value and the result is validated before saving.

    Example::

        hypercli config set default_profile petstore
        hypercli config set output.show_links false
        hypercli config set cache.enabled false
    """
    from pydantic import ValidationError

    from hypercli.config import load_global_config, save_global_config
    from hypercli.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    coerced: object = value
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset the global configuration to defaults.

    Asks for confirmation unless ``--force`` is given.  Profiles are kept.
    """
    from hypercli.config import save_global_config
    from hypercli.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
