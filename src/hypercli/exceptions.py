"""Exception hierarchy for hypercli.

All exceptions inherit from :class:`HypercliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`hypercli.exit_codes`.
The top-level error handler in :func:`hypercli.app.main` catches
``HypercliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    HypercliError (exit 1)
    +-- InvalidUsageError       (exit 2)
    |   +-- ParameterParseError (exit 2)
    +-- AuthError               (exit 3)
    +-- NotFoundError           (exit 4)
    +-- ServerError             (exit 5)
    +-- ConnectionError_        (exit 6)
    +-- DescriptionParseError   (exit 7)
    +-- ResolutionError         (exit 7)
    +-- LinkDialectError        (exit 1)
    +-- ConfigError             (exit 1)
"""

from hypercli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DESCRIPTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class HypercliError(Exception):
    """Base exception for all hypercli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`hypercli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(HypercliError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ParameterParseError(InvalidUsageError):
    """Raised when a CLI-supplied path argument does not match its declared type.

    Fatal to the current invocation only: no request is sent.

    Args:
        param_name: Wire name of the parameter that failed to parse.
        raw_value: The offending text as typed by the user.
        reason: Optional detail from the underlying conversion.
    """

    def __init__(self, param_name: str, raw_value: str, reason: str = ""):
        message = f"could not parse param {param_name} with input {raw_value!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.param_name = param_name
        self.raw_value = raw_value


class AuthError(HypercliError):
    """Raised when the API rejects the request credentials (HTTP 401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(HypercliError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(HypercliError):
    """Raised when the API returns an error status other than 401/403/404."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(HypercliError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DescriptionParseError(HypercliError):
    """Raised when an API description is malformed or cannot be compiled.

    Compilation is all-or-nothing: when this is raised no operations from
    the document are registered.
    """

    exit_code = EXIT_DESCRIPTION_ERROR


class ResolutionError(HypercliError):
    """Raised when a path template cannot be resolved to an absolute URI."""

    exit_code = EXIT_DESCRIPTION_ERROR


class LinkDialectError(HypercliError):
    """Raised when a link dialect's input breaks that dialect's syntax rules.

    Aborts the remaining link resolution for one response. The command
    runner reports it as a warning and still renders the response.
    """


class ConfigError(HypercliError):
    """Raised for configuration problems (missing profiles, invalid JSON)."""

    exit_code = EXIT_GENERIC_FAILURE
