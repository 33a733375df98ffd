"""hypercli -- a generic command-line client for HTTP APIs.

Instead of shipping a hand-written client per API, hypercli discovers an
API's shape at runtime: it compiles an OpenAPI 3.x description into a set of
invocable commands, and it extracts hypermedia links from live responses so
that related resources can be displayed and followed.

Typical workflow::

    hypercli config add petstore https://api.example.com
    hypercli api list-pets --limit 5
    hypercli api get-pet 42

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    shorthand: Terse ``key: value`` notation for structured values.
    parser: Description loading, ``$ref`` resolution, and the operation compiler.
    generator: Parameter serialisation, request building, and Typer commands.
    links: Pluggable hypermedia link resolution.
"""

__version__ = "0.3.0"
