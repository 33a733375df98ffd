"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~hypercli.exceptions.HypercliError` subclass.
Shell wrappers can inspect the exit code to tell a bad description apart
from a bad argument without parsing stderr.

Example::

    $ hypercli api get-user not-a-number
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the path argument did not parse
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The remote API rejected the request credentials (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DESCRIPTION_ERROR = 7
"""The API description could not be loaded, parsed, or compiled."""
