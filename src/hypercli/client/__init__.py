"""HTTP transport for hypercli.

:class:`SyncClient` wraps :mod:`httpx` to execute the requests built by the
generator, with profile default headers, dry-run mode, error mapping and
retry with exponential backoff.  :func:`decode_response` and
:func:`format_api_response` turn the result into a
:class:`~hypercli.models.ParsedResponse` and render it.

Example::

    from hypercli.client import SyncClient, format_api_response

    with SyncClient(profile) as client:
        format_api_response(client.send(request))
"""

from hypercli.client.response import decode_response, format_api_response
from hypercli.client.sync_client import SyncClient

__all__ = ["SyncClient", "decode_response", "format_api_response"]
