"""Map compiled parameters to Typer CLI options and arguments.

This module bridges the gap between :class:`~hypercli.models.Parameter`
values and Typer's CLI interface.  It converts each parameter into a
descriptor dictionary that
:func:`~hypercli.generator.command_tree._build_command_function` uses to
construct a dynamically generated function signature.

**Mapping rules:**

* **Path parameters** become positional :func:`typer.Argument` values --
  always required and typed ``str``.  They are parsed with
  :func:`~hypercli.generator.serializer.parse_value` at invocation time so
  that a bad value is reported against the parameter's wire name.
* **Query and header parameters** become ``--option`` flags named after
  :attr:`~hypercli.models.Parameter.cli_name`.  Required parameters use
  ``...`` (Typer's "required" sentinel); optional parameters use their
  declared default or ``None``.  Boolean flags come in ``--name/--no-name``
  pairs so that a ``true`` default can be switched off.
* **Scalar kinds** map to ``str``, ``int``, ``float`` and ``bool``; array
  types map to ``list[...]`` options that are repeated on the command line.
* **Python names** are sanitised via :func:`sanitize_param_name`.
"""

from __future__ import annotations

import keyword
import re
from typing import Any, Optional

import typer

from hypercli.models import Parameter, ParameterLocation, ParamType, ScalarKind


_KIND_TO_PYTHON: dict[ScalarKind, type] = {
    ScalarKind.STRING: str,
    ScalarKind.INTEGER: int,
    ScalarKind.NUMBER: float,
    ScalarKind.BOOLEAN: bool,
}


def python_type_for(param_type: ParamType) -> Any:
    """Return the annotation Typer should use for *param_type*.

    Example::

        >>> python_type_for(ParamType.from_string("integer"))
        <class 'int'>
        >>> python_type_for(ParamType.from_string("array[string]"))
        list[str]
    """
    base = _KIND_TO_PYTHON[param_type.kind]
    if param_type.array:
        return list[base]  # type: ignore[valid-type]
    return base


# ---------------------------------------------------------------------------
# Name sanitisation
# ---------------------------------------------------------------------------

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_param_name(name: str) -> str:
    """Convert a parameter name to a valid Python identifier.

    CamelCase boundaries become underscores, the result is lowercased,
    separators and other invalid characters become underscores, a leading
    digit gets an underscore prefix and Python keywords get a trailing
    underscore.

    Example::

        >>> sanitize_param_name("petId")
        'pet_id'
        >>> sanitize_param_name("X-Request-ID")
        'x_request_id'
        >>> sanitize_param_name("class")
        'class_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


# ---------------------------------------------------------------------------
# Parameter mapping
# ---------------------------------------------------------------------------


def map_parameter_to_typer(param: Parameter) -> dict[str, Any]:
    """Map a single :class:`~hypercli.models.Parameter` to a Typer descriptor dict.

    Returns:
        A dict with the following keys:

        * ``name`` (``str``) -- Python-safe parameter name (snake_case).
        * ``original_name`` (``str``) -- The wire name, used to bind the
          value when the request is built.
        * ``type`` -- Python type annotation for the parameter.
        * ``default`` -- A :func:`typer.Option` or :func:`typer.Argument`
          descriptor.
        * ``help`` (``str``) -- Help text for ``--help`` output.
        * ``is_argument`` (``bool``) -- ``True`` for path parameters.
        * ``location`` (:class:`~hypercli.models.ParameterLocation`).
    """
    py_name = sanitize_param_name(param.cli_name)
    is_argument = param.location == ParameterLocation.PATH
    help_text = _help_text(param)

    if is_argument:
        py_type: Any = str
        default = typer.Argument(
            ..., help=help_text or None, metavar=param.cli_name.upper(),
        )
    else:
        py_type = python_type_for(param.type)
        flag = f"--{param.cli_name}"
        if param.type.kind == ScalarKind.BOOLEAN and not param.type.array:
            flag += f"/--no-{param.cli_name}"
        if param.required:
            default = typer.Option(..., flag, help=help_text or None)
        else:
            fallback = param.default if _matches(param.type, param.default) else None
            if fallback is None:
                py_type = Optional[py_type]
            default = typer.Option(fallback, flag, help=help_text or None)

    return {
        "name": py_name,
        "original_name": param.name,
        "type": py_type,
        "default": default,
        "help": help_text,
        "is_argument": is_argument,
        "location": param.location,
    }


def build_body_argument() -> dict[str, Any]:
    """Build the trailing variadic argument that collects request body input."""
    help_text = "Request body in shorthand notation, e.g. 'name: Rex, tags: [a, b]'."
    return {
        "name": "body",
        "original_name": "__body__",
        "type": Optional[list[str]],
        "default": typer.Argument(None, help=help_text, metavar="BODY..."),
        "help": help_text,
        "is_argument": True,
        "location": None,
    }


def _help_text(param: Parameter) -> str:
    help_text = param.description or ""
    if param.example is not None and param.example != param.default:
        hint = f"(example: {param.example})"
        help_text = f"{help_text}  {hint}" if help_text else hint
    if param.cli_name != param.name:
        hint = f"(sent as {param.name})"
        help_text = f"{help_text}  {hint}" if help_text else hint
    return help_text


def _matches(param_type: ParamType, value: Any) -> bool:
    """Return ``True`` when *value* can serve as a Typer default for *param_type*."""
    if value is None:
        return False
    if param_type.array:
        return isinstance(value, list) and all(
            _matches(ParamType(kind=param_type.kind), item) for item in value
        )
    if param_type.kind == ScalarKind.BOOLEAN:
        return isinstance(value, bool)
    if param_type.kind == ScalarKind.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if param_type.kind == ScalarKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, str)
