"""Synchronous HTTP client for executing discovery methods.

:class:`ApiClient` wraps :class:`httpx.Client` and layers on:

- **Bearer auth** -- the token resolved by
  :func:`~discoli.auth.resolve_access_token` is sent as ``Authorization``
  unless the caller supplies that header.
- **Dry-run mode** -- prints the request to stderr and returns a synthetic
  200 response without sending traffic.
- **Retry with backoff** -- GET requests are retried on 5xx and network
  errors with exponential delay (1 s, 2 s, 4 s, ...). Other verbs are sent
  once because they are not guaranteed to be idempotent.
- **Error mapping** -- 4xx/5xx responses become typed
  :class:`~discoli.exceptions.DiscoliError` subclasses.

:func:`format_api_response` renders the result through
:mod:`discoli.output`.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx

from discoli.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from discoli.models import HTTPMethod, RequestConfig
from discoli.output import get_output

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class ApiClient:
    """Synchronous client for Google REST endpoints.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        config: Request settings (timeout, retries, SSL verification).
        token: Bearer token. ``None`` sends no ``Authorization`` header
            unless the caller provides one.
        dry_run: Print requests instead of sending them.
        transport: Optional :mod:`httpx` transport, used by tests.

    Example::

        with ApiClient(config.request, token=resolve_access_token()) as client:
            response = client.send(HTTPMethod.GET, url)
    """

    def __init__(
        self,
        config: RequestConfig,
        token: Optional[str] = None,
        dry_run: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._token = token
        self._dry_run = dry_run
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> ApiClient:
        self._client = httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def send(
        self,
        method: HTTPMethod,
        url: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> httpx.Response:
        """Send one request and return the response.

        Args:
            method: HTTP verb.
            url: Absolute URL including the query string.
            headers: Extra headers; they override the defaults.
            body: Serialized JSON body.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On any other 4xx, or 5xx after all retries.
            ConnectionError_: On network / timeout errors after all retries.
        """
        merged_headers = self._default_headers()
        merged_headers.update(headers or {})

        if self._dry_run:
            return self._print_dry_run(method, url, merged_headers, body)

        response = self._execute_with_retry(method, url, merged_headers, body)
        _map_response_error(response)
        return response

    def _default_headers(self) -> dict[str, str]:
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _execute_with_retry(
        self,
        method: HTTPMethod,
        url: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> httpx.Response:
        """Send the request, retrying GETs with exponential backoff."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._config.max_retries if method == HTTPMethod.GET else 0
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(
                    method.value, url, headers=headers, content=body
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2**attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {attempt + 1} attempt(s): {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2**attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue
            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _print_dry_run(
        self,
        method: HTTPMethod,
        url: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> httpx.Response:
        """Print request details to stderr and return a synthetic 200 response."""
        output = get_output()
        output.info(f"[dry-run] {method.value} {url}")
        for key, value in headers.items():
            if key.lower() == "authorization":
                value = "Bearer ***"
            output.info(f"  Header: {key}: {value}")
        if body is not None:
            output.info(f"  Body: {body}")

        return httpx.Response(
            status_code=200,
            headers={"content-type": "application/json"},
            json={"dry_run": True, "message": "Request was not sent"},
            request=httpx.Request(method=method.value, url=url),
        )


def _error_message(response: httpx.Response) -> str:
    """Extract a readable message from a Google error body.

    Google APIs answer ``{"error": {"code": ..., "message": ..., "status": ...}}``.
    """
    try:
        detail = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""
    if isinstance(detail, dict):
        err = detail.get("error")
        if isinstance(err, dict):
            return err.get("message") or err.get("status") or ""
        return str(err or detail.get("message") or "")
    return str(detail)


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    msg = _error_message(response)
    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        raise AuthError(full_msg)
    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)


def extract_response_data(response: httpx.Response) -> Any:
    """Return the decoded body; an empty body is ``{}`` and non-JSON is raw text."""
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


def format_api_response(response: httpx.Response) -> None:
    """Write the status line to stderr and the body to stdout."""
    output = get_output()
    output.debug(f"HTTP {response.status_code} {response.reason_phrase or ''}")
    content_type = response.headers.get("content-type", "application/json")
    data = extract_response_data(response)
    if isinstance(data, (dict, list)):
        content_type = "application/json"
    output.format_response(data, content_type)


def dump_body(payload: Any) -> str:
    """Serialize a request body compactly, the way it goes on the wire."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
