"""Synchronous HTTP transport with dry-run, retry and error mapping.

This module provides :class:`SyncClient`, the blocking client that executes
the :class:`~hypercli.models.Request` values built by
:func:`~hypercli.generator.request_builder.build_request`.  It wraps
:class:`httpx.Client` and layers on:

- **Profile headers** -- the profile's default headers are sent with every
  request; headers on the request itself take precedence.
- **Dry-run mode** -- prints the request to stderr and returns a synthetic
  200 response without sending traffic.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- 4xx/5xx statuses raise the matching
  :class:`~hypercli.exceptions.HypercliError` subclass.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx

from hypercli.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from hypercli.models import Profile, Request
from hypercli.output import get_output

_DEFAULT_ACCEPT = "application/json, application/yaml;q=0.9, */*;q=0.5"


class SyncClient:
    """Synchronous HTTP client for API calls.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        profile: The profile providing default headers and request settings
            (timeout, retries, SSL verification).
        dry_run: When ``True``, requests are printed to stderr and a
            synthetic 200 response is returned without network I/O.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with SyncClient(profile) as client:
            response = client.send(build_request(operation, ["42"]))
    """

    def __init__(
        self,
        profile: Profile,
        dry_run: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._profile = profile
        self._dry_run = dry_run
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> SyncClient:
        config = self._profile.request
        self._client = httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def send(self, request: Request) -> httpx.Response:
        """Send *request* with retry and error mapping.

        Returns:
            The :class:`httpx.Response` from the server.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On other 4xx, and 5xx after all retries.
            ConnectionError_: On network / timeout errors after all retries.
        """
        headers = self._build_headers(request)

        if self._dry_run:
            return self._print_dry_run(request, headers)

        response = self._execute_with_retry(request, headers)
        self._map_response_error(response)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_headers(self, request: Request) -> list[tuple[str, str]]:
        """Merge profile defaults under the request's own headers.

        Multi-valued request headers are sent as repeated header lines.
        """
        own = {name.lower() for name in request.headers}
        defaults = {"accept": ("Accept", _DEFAULT_ACCEPT)}
        for name, value in self._profile.headers.items():
            defaults[name.lower()] = (name, value)

        headers = [pair for key, pair in defaults.items() if key not in own]
        for name, values in request.headers.items():
            headers.extend((name, value) for value in values)

        if request.body is not None and request.media_type and "content-type" not in own:
            headers.append(("Content-Type", request.media_type))

        return headers

    def _execute_with_retry(
        self,
        request: Request,
        headers: list[tuple[str, str]],
    ) -> httpx.Response:
        """Execute the request, retrying on 5xx and network errors.

        The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._profile.request.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(
                    request.method,
                    request.uri,
                    headers=headers,
                    content=request.body.encode("utf-8") if request.body is not None else None,
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue

            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        msg = _error_detail(response)
        full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)

    def _print_dry_run(
        self,
        request: Request,
        headers: list[tuple[str, str]],
    ) -> httpx.Response:
        """Print request details to stderr and return a synthetic 200 response."""
        output = get_output()
        output.info(f"[dry-run] {request.method} {request.uri}")
        for key, value in headers:
            output.info(f"  Header: {key}: {value}")
        if request.body is not None:
            output.info(f"  Body: {request.body}")

        return httpx.Response(
            status_code=200,
            headers={"content-type": "application/json"},
            json={"dry_run": True, "message": "Request was not sent"},
            request=httpx.Request(method=request.method, url=request.uri),
        )


def _error_detail(response: httpx.Response) -> str:
    """Pull a short error message out of an error response body."""
    try:
        detail: Any = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text[:200] if response.text else ""

    if isinstance(detail, dict):
        return str(
            detail.get("message") or detail.get("error") or detail.get("detail")
            or detail.get("title") or ""
        )
    return str(detail)
