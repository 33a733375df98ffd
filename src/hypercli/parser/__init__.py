"""Description parser -- load, resolve ``$ref`` pointers, and compile operations.

This sub-package is responsible for the first half of the hypercli pipeline:
turning a raw OpenAPI 3.x document (JSON or YAML, local file or remote URL) into
an :class:`~hypercli.models.API` that the generator can consume.

Typical usage::

    from hypercli.parser import compile_api, discover_description

    loaded = discover_description("https://api.example.com")
    api = compile_api(loaded.document, "https://api.example.com",
                      headers=loaded.headers, fetched_at=loaded.fetched_at)

Sub-modules:

* :mod:`~hypercli.parser.loader` -- I/O layer (URL, file, stdin), discovery
  from an entrypoint, format detection and OpenAPI version validation.
* :mod:`~hypercli.parser.resolver` -- ``$ref`` resolution with
  circular-reference detection, and the URI resolver used for path templates.
* :mod:`~hypercli.parser.schema_doc` -- schema outlines for command help.
* :mod:`~hypercli.parser.compiler` -- walks the resolved document and
  produces :class:`~hypercli.models.Operation` objects.
"""

from hypercli.parser.compiler import compile_api
from hypercli.parser.loader import (
    LoadedDescription,
    discover_description,
    load_description,
    validate_openapi_version,
)
from hypercli.parser.resolver import DescriptionResolver, URIResolver

__all__ = [
    "compile_api",
    "load_description",
    "discover_description",
    "validate_openapi_version",
    "LoadedDescription",
    "DescriptionResolver",
    "URIResolver",
]
