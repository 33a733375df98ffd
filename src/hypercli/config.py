"""Configuration storage: XDG paths, atomic writes, profiles and precedence.

* **Directories** -- XDG Base Directory locations on Linux/BSD and
  ``~/.hypercli/`` elsewhere (:func:`get_config_dir`, :func:`get_cache_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`).
* **Global config** -- one :class:`~hypercli.models.GlobalConfig` JSON file.
* **Profiles** -- one JSON file per API, each a
  :class:`~hypercli.models.Profile`.
* **Precedence** -- :func:`resolve_config` picks the active profile from the
  CLI flag, the ``HYPERCLI_PROFILE`` environment variable, the project file
  ``./hypercli.json`` and the global config, in that order.
* **Header sources** -- :func:`resolve_header_values` expands ``env:`` and
  ``file:`` references in profile headers so secrets stay out of the
  profile files.

Every write goes through :func:`_atomic_write` (temp file, then rename).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from hypercli.exceptions import ConfigError
from hypercli.models import GlobalConfig, Profile

_APP_NAME = "hypercli"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "hypercli.json"
PROFILE_ENV_VAR = "HYPERCLI_PROFILE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Return ``$env_var``, or ``$HOME`` joined with *default_segments*."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return (and create) the configuration directory.

    ``$XDG_CONFIG_HOME/hypercli/`` on Linux/BSD, ``~/.hypercli/`` elsewhere.
    """
    if _is_xdg_platform():
        return _ensure(_xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME)
    return _ensure(_fallback_base_dir())


def get_cache_dir() -> Path:
    """Return (and create) the cache directory for compiled descriptions.

    ``$XDG_CACHE_HOME/hypercli/`` on Linux/BSD, ``~/.hypercli/cache/``
    elsewhere.  Its content can be deleted at any time.
    """
    if _is_xdg_platform():
        return _ensure(_xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME)
    return _ensure(_fallback_base_dir() / "cache")


def get_data_dir() -> Path:
    """Return (and create) the data directory used for crash logs.

    ``$XDG_DATA_HOME/hypercli/`` on Linux/BSD, ``~/.hypercli/logs/``
    elsewhere.
    """
    if _is_xdg_platform():
        return _ensure(_xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME)
    return _ensure(_fallback_base_dir() / "logs")


def get_profiles_dir() -> Path:
    return _ensure(get_config_dir() / "profiles")


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* through a temp file in the same directory.

    ``os.replace`` of a sibling file is atomic on POSIX, so readers see
    either the old or the new content.  The temp file is removed on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults when there is none.

    Raises:
        ConfigError: If the file holds invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    if not name or "/" in name or "\\" in name or name.startswith("."):
        raise ConfigError(f"Invalid profile name: {name!r}")
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return the names of all stored profiles, sorted."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load and validate the profile called *name*.

    Raises:
        ConfigError: If the profile is missing, holds invalid JSON or fails
            validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    data = _read_json(path, f"profile '{name}'")
    try:
        return Profile.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> None:
    data = profile.model_dump(mode="json", exclude_none=True)
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete the profile called *name*.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./hypercli.json`` when present.

    A repository uses it to pin ``default_profile``.

    Raises:
        ConfigError: If the file holds invalid JSON or is not an object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected an object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Return ``(global_config, active_profile_or_None)``.

    The active profile name comes from, highest first:

    1. the ``--profile`` flag (*cli_profile*),
    2. the ``HYPERCLI_PROFILE`` environment variable,
    3. ``default_profile`` in ``./hypercli.json``,
    4. ``default_profile`` in the global config,
    5. the only stored profile, when ``auto_select_single_profile`` is on.
    """
    global_cfg = load_global_config()
    project = load_project_config() or {}

    candidates = (
        cli_profile,
        os.environ.get(PROFILE_ENV_VAR) or None,
        project.get("default_profile"),
        global_cfg.default_profile,
    )
    name = next((c for c in candidates if c), None)

    if name is None and global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        if len(profiles) == 1:
            name = profiles[0]

    profile = load_profile(name) if name is not None else None

    if cli_format is not None:
        global_cfg.output.format = cli_format

    return global_cfg, profile


# --- Header sources ---


def resolve_header_values(headers: dict[str, str]) -> dict[str, str]:
    """Expand header value references.

    * ``env:VAR`` -- the value of environment variable ``VAR``.
    * ``file:PATH`` -- the stripped content of ``PATH`` (``~`` expanded).
    * anything else -- used literally.

    Raises:
        ConfigError: If a referenced variable or file does not exist.
    """
    return {name: _resolve_source(name, value) for name, value in headers.items()}


def _resolve_source(name: str, value: str) -> str:
    if value.startswith("env:"):
        var_name = value[4:]
        resolved = os.environ.get(var_name)
        if resolved is None:
            raise ConfigError(
                f"Environment variable '{var_name}' for header {name} is not set"
            )
        return resolved

    if value.startswith("file:"):
        path = Path(value[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"File {path} for header {name} not found")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read {path} for header {name}: {exc}") from exc

    return value
