"""Load API description documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw OpenAPI documents and converting
them into Python dictionaries.  It supports both JSON and YAML formats with
automatic format detection, and validates that the document declares a
supported OpenAPI version (3.x).

The public functions are:

* :func:`load_description` -- Load and parse a description from any source.
* :func:`discover_description` -- Find the description of an API given only
  its entrypoint, trying the entrypoint itself and then well-known locations.
* :func:`validate_openapi_version` -- Check and return the ``openapi`` version
  string, rejecting Swagger 2.x and unsupported versions.

Each loader returns a :class:`LoadedDescription`, which keeps the response
headers and fetch time next to the document so that the compiler can work
out how long the compiled result may be reused.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

import httpx
import yaml
from pydantic import BaseModel, Field

from hypercli.exceptions import DescriptionParseError

LOCATION_HINTS = ("/openapi.json", "/openapi.yaml")
"""Well-known description locations tried relative to an API entrypoint."""

_OPENAPI_MEDIA_TYPE = "application/vnd.oai.openapi"


class LoadedDescription(BaseModel):
    """A decoded description document plus the metadata of its fetch."""

    document: dict[str, Any]
    location: str
    headers: dict[str, str] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def load_description(source: str) -> LoadedDescription:
    """Load an API description from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed description with its fetch metadata.

    Raises:
        DescriptionParseError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def discover_description(entrypoint: str, timeout: float = 30.0) -> LoadedDescription:
    """Locate and load the description of the API served at *entrypoint*.

    The entrypoint response is used directly when it looks like an OpenAPI
    document; otherwise each of :data:`LOCATION_HINTS` is tried in turn.

    Raises:
        DescriptionParseError: If no candidate location yields a description.
    """
    candidates = [entrypoint] + [urljoin(entrypoint, hint) for hint in LOCATION_HINTS]
    tried: list[str] = []

    for candidate in candidates:
        try:
            response = httpx.get(candidate, timeout=timeout, follow_redirects=True)
        except httpx.RequestError as exc:
            tried.append(f"{candidate} ({exc})")
            continue

        if response.status_code >= 400 or not is_openapi_response(
            response.headers.get("content-type", ""), response.text
        ):
            tried.append(f"{candidate} (HTTP {response.status_code})")
            continue

        return _from_response(str(response.url), response)

    raise DescriptionParseError(
        f"No API description found for {entrypoint}. Tried:\n  " + "\n  ".join(tried)
    )


def is_openapi_response(content_type: str, text: str) -> bool:
    """Return ``True`` when a response looks like an OpenAPI 3 document."""
    if content_type.startswith(_OPENAPI_MEDIA_TYPE):
        return True
    return "openapi: 3" in text or '"openapi": "3' in text or '"openapi":"3' in text


def _load_from_stdin() -> LoadedDescription:
    """Read the description from stdin.

    Raises:
        DescriptionParseError: If stdin is empty or content cannot be parsed.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise DescriptionParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DescriptionParseError("No input received from stdin")

    return LoadedDescription(document=_parse_content(content, hint="stdin"), location="-")


def _load_from_url(url: str) -> LoadedDescription:
    """Fetch the description from *url*. Supports JSON and YAML responses.

    Raises:
        DescriptionParseError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DescriptionParseError(
            f"HTTP {exc.response.status_code} fetching description from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DescriptionParseError(
            f"Failed to fetch description from {url}: {exc}"
        ) from exc

    return _from_response(url, response)


def _from_response(location: str, response: httpx.Response) -> LoadedDescription:
    # Use content-type as a hint for parsing
    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return LoadedDescription(
        document=_parse_content(response.text, hint=hint),
        location=location,
        headers={key.lower(): value for key, value in response.headers.items()},
    )


def _load_from_file(path: str) -> LoadedDescription:
    """Load the description from a local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        DescriptionParseError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise DescriptionParseError(f"Description file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptionParseError(
            f"Failed to read description file {path}: {exc}"
        ) from exc

    if not content.strip():
        raise DescriptionParseError(f"Description file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return LoadedDescription(
        document=_parse_content(content, hint=hint),
        location=file_path.resolve().as_uri(),
    )


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Raises:
        DescriptionParseError: If the content cannot be parsed as either format.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DescriptionParseError(f"Invalid JSON: {exc}") from exc
        else:
            if not isinstance(result, dict):
                raise DescriptionParseError(
                    f"Description must be a JSON/YAML object (got {type(result).__name__})"
                )
            return result

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        if not isinstance(result, dict):
            raise DescriptionParseError(
                "Description must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result

    msg = "Failed to parse description as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DescriptionParseError(msg)


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Supports OpenAPI 3.x. Raises for Swagger 2.x, missing version fields,
    or unsupported versions.

    Raises:
        DescriptionParseError: If the version is missing, unsupported, or
            indicates Swagger 2.x.
    """
    if "swagger" in document:
        raise DescriptionParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.x descriptions are supported."
        )

    openapi_version = document.get("openapi")
    if openapi_version is None:
        raise DescriptionParseError(
            "Missing 'openapi' field. Is this an OpenAPI 3.x document?"
        )

    version_str = str(openapi_version)
    if version_str.startswith("3."):
        return version_str

    raise DescriptionParseError(
        f"Unsupported OpenAPI version: {version_str}. "
        "Only OpenAPI 3.x descriptions are supported."
    )
