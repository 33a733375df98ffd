"""Compile an OpenAPI 3.x description into an :class:`~hypercli.models.API`.

This module walks a ``$ref``-resolved description document and produces one
:class:`~hypercli.models.Operation` per path + HTTP method pair, each with
compiled :class:`~hypercli.models.Parameter` values, a resolved URI template
and generated documentation.

The single public entry point is :func:`compile_api`.  The document is
treated as untrusted, loosely-shaped input: every optional field is absent
by default, but a field that is present with the wrong shape aborts the
whole compilation with :class:`~hypercli.exceptions.DescriptionParseError`
(nothing is partially registered).

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.

Recognised extensions (all optional):

* ``x-cli-name`` -- rename an operation, or set a parameter's flag name.
* ``x-cli-aliases`` -- extra command names for an operation.
* ``x-cli-description`` -- replace an operation's or parameter's description.
* ``x-cli-ignore`` -- drop a path item, an operation or a parameter.
* ``x-cli-hidden`` -- hide an operation (or every operation of a path item)
  from listings while keeping it invocable.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
from urllib.parse import urlsplit

from hypercli import shorthand
from hypercli.cache.freshness import compute_cache_until
from hypercli.exceptions import DescriptionParseError, HypercliError, ResolutionError
from hypercli.models import (
    API,
    Operation,
    Parameter,
    ParameterLocation,
    ParameterStyle,
    ParamType,
    ScalarKind,
)
from hypercli.parser.loader import validate_openapi_version
from hypercli.parser.resolver import DescriptionResolver, URIResolver, resolve_refs
from hypercli.parser.schema_doc import MODE_READ, MODE_WRITE, render_schema, schema_type_of

logger = logging.getLogger(__name__)

EXT_NAME = "x-cli-name"
EXT_ALIASES = "x-cli-aliases"
EXT_DESCRIPTION = "x-cli-description"
EXT_IGNORE = "x-cli-ignore"
EXT_HIDDEN = "x-cli-hidden"

# HTTP methods recognized on an OpenAPI path item
_HTTP_METHODS = frozenset(
    ("get", "put", "post", "delete", "options", "head", "patch", "trace")
)

ResolverLike = Union[URIResolver, Callable[[str], str]]


def compile_api(
    document: Mapping[str, Any],
    entrypoint: str,
    resolver: Optional[ResolverLike] = None,
    *,
    headers: Optional[Mapping[str, str]] = None,
    fetched_at: Optional[datetime] = None,
) -> API:
    """Compile a description document into an :class:`~hypercli.models.API`.

    Args:
        document: The decoded description (before ``$ref`` resolution).
        entrypoint: Base URL of the API.  Its scheme and host pick the
            matching ``servers`` entry whose path prefixes every operation.
        resolver: Turns ``basePath + pathTemplate`` into an absolute URI.
            Either an object with a ``resolve`` method or a plain callable.
            Defaults to a :class:`~hypercli.parser.resolver.DescriptionResolver`
            for *entrypoint*.
        headers: Headers of the response the document was fetched with,
            used to compute :attr:`~hypercli.models.API.cache_until`.
        fetched_at: When the document was fetched.

    Returns:
        The compiled API, with operations in document order.

    Raises:
        DescriptionParseError: If the document is malformed or an extension
            value has the wrong type.
        ResolutionError: If the resolver fails for a path template.

    Example::

        loaded = load_description("https://api.example.com/openapi.json")
        api = compile_api(loaded.document, "https://api.example.com",
                          headers=loaded.headers, fetched_at=loaded.fetched_at)
        for op in api.operations:
            print(op.name, op.method, op.uri_template)
    """
    if not isinstance(document, Mapping):
        raise DescriptionParseError(
            f"Description must be an object (got {type(document).__name__})"
        )

    validate_openapi_version(dict(document))
    resolved = resolve_refs(dict(document))
    resolve = _resolver_function(resolver or DescriptionResolver(entrypoint))
    base_path = _base_path(resolved, entrypoint)

    paths = resolved.get("paths") or {}
    if not isinstance(paths, dict):
        raise DescriptionParseError("'paths' must be an object")

    operations: list[Operation] = []
    taken: set[str] = set()

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            raise DescriptionParseError(f"Path item {path!r} must be an object")

        if _ext_bool(path_item, EXT_IGNORE, path):
            logger.debug("Ignoring path %s", path)
            continue

        uri_template = _resolve_uri(resolve, base_path + str(path))

        for method, raw_op in path_item.items():
            if method not in _HTTP_METHODS:
                continue
            where = f"{method.upper()} {path}"
            if not isinstance(raw_op, dict):
                raise DescriptionParseError(f"Operation {where} must be an object")

            if _ext_bool(raw_op, EXT_IGNORE, where):
                logger.debug("Ignoring operation %s", where)
                continue

            operation = _compile_operation(
                method, str(path), uri_template, path_item, raw_op, taken,
            )
            taken.add(operation.name)
            taken.update(operation.aliases)
            operations.append(operation)

    info = resolved.get("info") or {}
    if not isinstance(info, dict):
        raise DescriptionParseError("'info' must be an object")

    logger.debug("Compiled %d operations for %s", len(operations), entrypoint)

    return API(
        title=str(info.get("title") or ""),
        description=str(info.get("description") or ""),
        operations=tuple(operations),
        cache_until=compute_cache_until(headers, fetched_at),
    )


# ---------------------------------------------------------------------------
# Base path / URI resolution
# ---------------------------------------------------------------------------


def _base_path(document: dict[str, Any], entrypoint: str) -> str:
    """Return the path of the first server sharing the entrypoint's scheme and host.

    Server variables are replaced by their declared defaults before matching.
    """
    parts = urlsplit(entrypoint)
    prefix = f"{parts.scheme}://{parts.netloc}"

    servers = document.get("servers") or []
    if not isinstance(servers, list):
        raise DescriptionParseError("'servers' must be a list")

    for server in servers:
        if not isinstance(server, dict) or not isinstance(server.get("url"), str):
            continue
        url = _expand_server_variables(server["url"], server.get("variables"))
        if url == prefix or url.startswith(prefix + "/"):
            return urlsplit(url).path.rstrip("/")

    return ""


def _expand_server_variables(url: str, variables: Any) -> str:
    if not isinstance(variables, dict):
        return url
    for name, variable in variables.items():
        if isinstance(variable, dict) and "default" in variable:
            url = url.replace("{" + str(name) + "}", str(variable["default"]))
    return url


def _resolver_function(resolver: ResolverLike) -> Callable[[str], str]:
    resolve = getattr(resolver, "resolve", None)
    if callable(resolve):
        return resolve
    if callable(resolver):
        return resolver
    raise TypeError(f"Not a URI resolver: {resolver!r}")


def _resolve_uri(resolve: Callable[[str], str], uri: str) -> str:
    try:
        return str(resolve(uri))
    except HypercliError:
        raise
    except Exception as exc:
        raise ResolutionError(f"Cannot resolve path {uri!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def _compile_operation(
    method: str,
    path: str,
    uri_template: str,
    path_item: dict[str, Any],
    raw_op: dict[str, Any],
    taken: set[str],
) -> Operation:
    where = f"{method.upper()} {path}"

    merged = _merge_parameters(
        _parameter_list(path_item.get("parameters"), path),
        _parameter_list(raw_op.get("parameters"), where),
    )

    grouped: dict[ParameterLocation, list[Parameter]] = {loc: [] for loc in ParameterLocation}
    for raw_param in merged:
        param = _compile_parameter(raw_param, where)
        if param is not None:
            grouped[param.location].append(param)

    for param in grouped[ParameterLocation.PATH]:
        if "{" + param.name + "}" not in uri_template:
            logger.warning("%s: path parameter %r has no placeholder", where, param.name)

    name = _ext_str(raw_op, EXT_NAME, where) or _default_name(method, path, raw_op)
    name = _unique_name(name, method, taken)
    aliases = tuple(a for a in _ext_str_list(raw_op, EXT_ALIASES, where) if a not in taken)

    description = _ext_str(raw_op, EXT_DESCRIPTION, where)
    if description is None:
        description = str(raw_op.get("description") or "")

    if EXT_HIDDEN in raw_op:
        hidden = _ext_bool(raw_op, EXT_HIDDEN, where)
    else:
        hidden = _ext_bool(path_item, EXT_HIDDEN, path)

    media_type, body_doc, examples = _compile_request_body(raw_op.get("requestBody"), where)
    description += body_doc
    description += _response_docs(raw_op.get("responses"), where)

    return Operation(
        name=name,
        aliases=aliases,
        short_description=str(raw_op.get("summary") or ""),
        long_description=description,
        method=method.upper(),
        uri_template=uri_template,
        path_params=tuple(grouped[ParameterLocation.PATH]),
        query_params=tuple(grouped[ParameterLocation.QUERY]),
        header_params=tuple(grouped[ParameterLocation.HEADER]),
        body_media_type=media_type,
        examples=tuple(examples),
        hidden=hidden,
    )


def slugify(value: str) -> str:
    """Turn an operation identifier into a kebab-case command name.

    ``"listPets"`` becomes ``"list-pets"``, ``"get /pets/{petId}"`` becomes
    ``"get-pets-pet-id"``.
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1-\2", result)
    result = re.sub(r"[^a-zA-Z0-9]+", "-", result).strip("-").lower()
    return result or "operation"


def _default_name(method: str, path: str, raw_op: dict[str, Any]) -> str:
    operation_id = raw_op.get("operationId")
    if isinstance(operation_id, str) and operation_id.strip():
        return slugify(operation_id)
    return slugify(f"{method}-{path}")


def _unique_name(name: str, method: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    candidate = f"{name}-{method}"
    counter = 2
    while candidate in taken:
        candidate = f"{name}-{method}-{counter}"
        counter += 1
    logger.warning("Duplicate command name %r renamed to %r", name, candidate)
    return candidate


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def _parameter_list(value: Any, where: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(p, dict) for p in value):
        raise DescriptionParseError(f"{where}: 'parameters' must be a list of objects")
    return value


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).  Path-level parameters keep their
    position ahead of the operation-level ones.
    """
    op_keys = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [p for p in path_params if (p.get("name", ""), p.get("in", "")) not in op_keys]
    merged.extend(op_params)
    return merged


def _compile_parameter(raw: dict[str, Any], where: str) -> Optional[Parameter]:
    """Compile one raw parameter object.

    Returns ``None`` for parameters that are not exposed: unsupported
    locations (``cookie``) and non-path parameters marked ``x-cli-ignore``.
    """
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise DescriptionParseError(f"{where}: parameter without a name")
    param_where = f"{where} parameter {name!r}"

    try:
        location = ParameterLocation(raw.get("in"))
    except ValueError:
        logger.debug("%s: unsupported location %r skipped", param_where, raw.get("in"))
        return None

    if location != ParameterLocation.PATH and _ext_bool(raw, EXT_IGNORE, param_where):
        return None

    schema = _parameter_schema(raw)
    param_type = _param_type(schema)

    explode = raw.get("explode", False)
    if not isinstance(explode, bool):
        raise DescriptionParseError(f"{param_where}: 'explode' must be a boolean")

    description = _ext_str(raw, EXT_DESCRIPTION, param_where)
    if description is None and raw.get("description"):
        description = str(raw["description"])

    default = _coerce_default(schema.get("default"), param_type)

    return Parameter(
        name=name,
        display_name=_ext_str(raw, EXT_NAME, param_where),
        description=description,
        location=location,
        type=param_type,
        style=ParameterStyle.FORM if raw.get("style") == "form" else ParameterStyle.SIMPLE,
        explode=explode,
        required=True if location == ParameterLocation.PATH else bool(raw.get("required", False)),
        default=default,
        example=_parameter_example(raw, schema),
    )


def _parameter_schema(raw: dict[str, Any]) -> dict[str, Any]:
    """Return the parameter's schema, looking inside ``content`` when needed."""
    schema = raw.get("schema")
    if isinstance(schema, dict):
        return schema
    content = raw.get("content")
    if isinstance(content, dict):
        for media in content.values():
            if isinstance(media, dict) and isinstance(media.get("schema"), dict):
                return media["schema"]
    return {}


def _param_type(schema: dict[str, Any]) -> ParamType:
    schema_type = schema_type_of(schema)
    if schema_type == "array":
        return ParamType.from_string(f"array[{schema_type_of(schema.get('items') or {})}]")
    return ParamType.from_string(schema_type)


def _parameter_example(raw: dict[str, Any], schema: dict[str, Any]) -> Any:
    """Parameter example, then schema example, then schema default."""
    if raw.get("example") is not None:
        return raw["example"]
    examples = raw.get("examples")
    if isinstance(examples, dict):
        for example in examples.values():
            if isinstance(example, dict) and example.get("value") is not None:
                return example["value"]
    if schema.get("example") is not None:
        return schema["example"]
    return schema.get("default")


def _coerce_default(value: Any, param_type: ParamType) -> Any:
    """Convert a textual schema default to the parameter's scalar kind.

    Values that cannot be converted are kept as declared; suppression then
    treats them as different from any bound value.
    """
    if not isinstance(value, str) or param_type.array:
        return value
    try:
        if param_type.kind == ScalarKind.INTEGER:
            return int(value)
        if param_type.kind == ScalarKind.NUMBER:
            return float(value)
    except ValueError:
        return value
    if param_type.kind == ScalarKind.BOOLEAN and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


# ---------------------------------------------------------------------------
# Request body and responses
# ---------------------------------------------------------------------------


def select_media_type(media_types: list[str]) -> Optional[str]:
    """Pick the request media type: JSON first, then YAML, else the first declared."""
    for media_type in media_types:
        if "json" in media_type:
            return media_type
    for media_type in media_types:
        if "yaml" in media_type:
            return media_type
    return media_types[0] if media_types else None


def _compile_request_body(
    body: Any, where: str,
) -> tuple[Optional[str], str, list[str]]:
    """Return ``(media_type, documentation, usage_examples)`` for a request body."""
    if body is None:
        return None, "", []
    if not isinstance(body, dict):
        raise DescriptionParseError(f"{where}: 'requestBody' must be an object")

    content = body.get("content") or {}
    if not isinstance(content, dict):
        raise DescriptionParseError(f"{where}: request body 'content' must be an object")

    media_type = select_media_type([str(mt) for mt in content])
    if media_type is None:
        return None, "", []

    media = content.get(media_type)
    media = media if isinstance(media, dict) else {}

    doc = ""
    usage: list[str] = []
    for example in _media_examples(media):
        if isinstance(example, dict):
            text = shorthand.render(example)
            usage.append(text)
        elif isinstance(example, str):
            text = example
        else:
            text = json.dumps(example)

        if not doc:
            doc = "\n## Input Example\n\n"
        doc += f"\n{text}\n"

    schema = media.get("schema")
    if isinstance(schema, dict):
        doc += (
            f"\n## Request Schema ({media_type})\n\n"
            f"```schema\n{render_schema(schema, MODE_WRITE)}\n```\n"
        )

    return media_type, doc, usage


def _media_examples(media: dict[str, Any]) -> list[Any]:
    if media.get("example") is not None:
        return [media["example"]]
    examples = media.get("examples")
    if isinstance(examples, dict):
        for example in examples.values():
            if isinstance(example, dict) and example.get("value") is not None:
                return [example["value"]]
    return []


def _response_docs(responses: Any, where: str) -> str:
    """Document every declared response, in lexical order of the status code."""
    if responses is None:
        return ""
    if not isinstance(responses, dict):
        raise DescriptionParseError(f"{where}: 'responses' must be an object")

    by_code = {str(code): value for code, value in responses.items()}
    doc = ""

    for code in sorted(by_code):
        response = by_code[code]
        if not isinstance(response, dict):
            continue

        content = response.get("content")
        if isinstance(content, dict) and content:
            for content_type, media in content.items():
                doc += f"\n## Response {code} ({content_type})\n"
                schema = media.get("schema") if isinstance(media, dict) else None
                if isinstance(schema, dict):
                    doc += f"\n```schema\n{render_schema(schema, MODE_READ)}\n```\n"
        else:
            doc += f"\n## Response {code}\n"
            if response.get("description"):
                doc += f"\n{response['description']}\n"

    return doc


# ---------------------------------------------------------------------------
# Extension helpers
# ---------------------------------------------------------------------------


def _ext_bool(obj: dict[str, Any], key: str, where: str) -> bool:
    if key not in obj:
        return False
    value = obj[key]
    if not isinstance(value, bool):
        raise DescriptionParseError(
            f"Cannot read extension {key} on {where}: expected a boolean, "
            f"got {type(value).__name__}"
        )
    return value


def _ext_str(obj: dict[str, Any], key: str, where: str) -> Optional[str]:
    if key not in obj:
        return None
    value = obj[key]
    if not isinstance(value, str):
        raise DescriptionParseError(
            f"Cannot read extension {key} on {where}: expected a string, "
            f"got {type(value).__name__}"
        )
    return value or None


def _ext_str_list(obj: dict[str, Any], key: str, where: str) -> list[str]:
    if key not in obj:
        return []
    value = obj[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DescriptionParseError(
            f"Cannot read extension {key} on {where}: expected a list of strings"
        )
    return value
