"""Convert between bound parameter values and their wire strings.

:func:`serialize` renders a typed value into the strings placed on the
request, :func:`parse_value` turns a raw CLI string into a typed value, and
:func:`should_send` implements default suppression for query and header
parameters.

**Array encoding:**

* ``simple`` style -- always one comma-joined string, whatever ``explode``
  says.
* ``form`` style, ``explode=False`` -- one comma-joined string.
* ``form`` style, ``explode=True`` -- one string per element, each sent
  under the parameter's own name.
"""

from __future__ import annotations

from typing import Any

from hypercli.exceptions import ParameterParseError
from hypercli.models import Parameter, ParameterStyle, ScalarKind

_TRUE_VALUES = frozenset(("1", "t", "T", "true", "TRUE", "True"))
_FALSE_VALUES = frozenset(("0", "f", "F", "false", "FALSE", "False"))


def format_scalar(value: Any) -> str:
    """Return the canonical textual form of a scalar value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def serialize(param: Parameter, value: Any) -> list[str]:
    """Render *value* into the wire strings for *param*.

    Returns an empty list for ``None``.  Scalars always yield exactly one
    string.
    """
    if value is None:
        return []

    if not isinstance(value, (list, tuple)):
        if not param.type.array:
            return [format_scalar(value)]
        value = [value]

    texts = [format_scalar(item) for item in value]
    if param.style == ParameterStyle.FORM and param.explode:
        return texts
    return [",".join(texts)]


def parse_value(param: Parameter, raw: str) -> Any:
    """Parse a raw CLI string into the value type of *param*.

    Array parameters take a comma-separated list.

    Raises:
        ParameterParseError: If *raw* is not a valid value of the
            parameter's type.  No request must be sent in that case.
    """
    if param.type.array:
        if raw == "":
            return []
        return [_parse_scalar(param, part) for part in raw.split(",")]
    return _parse_scalar(param, raw)


def _parse_scalar(param: Parameter, raw: str) -> Any:
    kind = param.type.kind
    try:
        if kind == ScalarKind.INTEGER:
            return int(raw)
        if kind == ScalarKind.NUMBER:
            return float(raw)
    except ValueError as exc:
        raise ParameterParseError(param.name, raw, f"expected {kind.value}") from exc

    if kind == ScalarKind.BOOLEAN:
        if raw in _TRUE_VALUES:
            return True
        if raw in _FALSE_VALUES:
            return False
        raise ParameterParseError(param.name, raw, "expected boolean")

    return raw


def should_send(param: Parameter, value: Any) -> bool:
    """Return ``True`` when *value* must be put on the outgoing request.

    A value is suppressed when it equals the declared default, or, with no
    declared default, when it is the zero value of its type (``0``,
    ``False``, ``""`` or an empty list).
    """
    if value is None:
        return False
    if param.default is not None:
        return not values_equal(value, param.default)
    return not is_zero(value)


def is_zero(value: Any) -> bool:
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple)):
        return len(value) == 0
    return False


def values_equal(left: Any, right: Any) -> bool:
    """Compare a bound value with a declared default.

    Values of different shapes compare unequal (a boolean never equals a
    number), numbers compare numerically and sequences element by element.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    return type(left) is type(right) and left == right
