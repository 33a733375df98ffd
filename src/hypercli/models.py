"""Canonical Pydantic models shared across all hypercli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`OutputConfig`, :class:`CacheConfig`,
    :class:`GlobalConfig`, and :class:`Profile`.

**Compiled API models** -- produced by the operation compiler and consumed
by the command builder and the Typer command tree:
    :class:`ParameterLocation`, :class:`ParameterStyle`, :class:`ScalarKind`,
    :class:`ParamType`, :class:`Parameter`, :class:`Operation`, and
    :class:`API`. These are frozen: once compiled they are read-only values.

**Exchange models** -- one outgoing request and one decoded response:
    :class:`Request`, :class:`Link`, and :class:`ParsedResponse`.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call in a profile."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )
    show_links: bool = Field(
        default=True, description="List discovered hypermedia links on stderr"
    )


class CacheConfig(BaseModel):
    """Compiled-description cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Reuse compiled API descriptions")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/hypercli/config.json``.

    Fields here have the lowest precedence and can be overridden by project
    config, environment variables, or CLI flags. See
    :func:`~hypercli.config.resolve_config` for the full precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


class Profile(BaseModel):
    """Per-API profile stored as JSON under the ``profiles/`` config directory.

    A profile names one API. ``entrypoint`` is the API's base URL; the
    description document is read from ``description`` when set, otherwise
    it is discovered from the entrypoint (see
    :func:`~hypercli.parser.loader.discover_description`).
    """

    model_config = ConfigDict(extra="allow")

    name: str
    entrypoint: str = Field(description="Base URL of the API")
    description: Optional[str] = Field(
        default=None, description="URL or file path of the OpenAPI description"
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Compiled API ---


class ParameterLocation(str, enum.Enum):
    """Where a compiled parameter is placed on the outgoing request."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"


class ParameterStyle(str, enum.Enum):
    """Encoding convention for multi-valued parameters."""

    SIMPLE = "simple"
    FORM = "form"


class ScalarKind(str, enum.Enum):
    """Scalar value kinds a parameter (or array element) can hold."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class ParamType(BaseModel):
    """Tagged parameter type: a scalar kind, optionally wrapped in an array.

    The textual form mirrors the compiled description notation:
    ``"integer"`` or ``"array[integer]"``.
    """

    model_config = ConfigDict(frozen=True)

    kind: ScalarKind = ScalarKind.STRING
    array: bool = False

    @classmethod
    def from_string(cls, text: str) -> ParamType:
        """Parse ``"kind"`` or ``"array[kind]"``; unknown kinds become strings."""
        array = text.startswith("array[") and text.endswith("]")
        if array:
            text = text[len("array["):-1]
        try:
            kind = ScalarKind(text)
        except ValueError:
            kind = ScalarKind.STRING
        return cls(kind=kind, array=array)

    def __str__(self) -> str:
        if self.array:
            return f"array[{self.kind.value}]"
        return self.kind.value


class Parameter(BaseModel):
    """One compiled request input.

    Path parameters are always required and positional; their order within
    :attr:`Operation.path_params` is fixed at compile time. ``default``
    takes part in wire-value suppression, ``example`` is documentation only.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    location: ParameterLocation
    type: ParamType = Field(default_factory=ParamType)
    style: ParameterStyle = ParameterStyle.SIMPLE
    explode: bool = False
    required: bool = False
    default: Any = None
    example: Any = None

    @property
    def cli_name(self) -> str:
        """Name exposed as the local flag or argument."""
        return self.display_name or self.name


class Operation(BaseModel):
    """One invocable API action, exposed as one CLI sub-command.

    ``uri_template`` is absolute and holds one ``{name}`` placeholder per
    path parameter, in declaration order. A non-empty ``body_media_type``
    means the command accepts a request body.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    aliases: tuple[str, ...] = ()
    short_description: str = ""
    long_description: str = ""
    method: str
    uri_template: str
    path_params: tuple[Parameter, ...] = ()
    query_params: tuple[Parameter, ...] = ()
    header_params: tuple[Parameter, ...] = ()
    body_media_type: Optional[str] = None
    examples: tuple[str, ...] = ()
    hidden: bool = False


class API(BaseModel):
    """The compiled result of one description document.

    Owns its operations exclusively. ``cache_until`` is the absolute time
    after which the source description should be fetched again.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    operations: tuple[Operation, ...] = ()
    cache_until: datetime

    def find(self, name: str) -> Optional[Operation]:
        """Return the operation called *name* (or aliased as *name*)."""
        for operation in self.operations:
            if operation.name == name or name in operation.aliases:
                return operation
        return None


# --- Exchange ---


class Request(BaseModel):
    """One outgoing HTTP request, ready for the transport."""

    method: str
    uri: str
    headers: dict[str, list[str]] = Field(default_factory=dict)
    body: Optional[str] = None
    media_type: Optional[str] = None


class Link(BaseModel):
    """One discovered hypermedia relation."""

    rel: str
    uri: str


Links = dict[str, list[Link]]
"""Relation name -> links in discovery order (duplicates preserved)."""


class ParsedResponse(BaseModel):
    """A response whose body has already been decoded into native values.

    ``headers`` holds one (comma-joined) value per lower-cased header name.
    ``links`` is filled in by :mod:`hypercli.links`.
    """

    status: int = 0
    uri: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    links: dict[str, list[Link]] = Field(default_factory=dict)
