"""``discoli exec`` -- call an API method.

Builds the request URL from the method's ``flatPath``, substituting
``{placeholder}`` tokens from ``-p key=value`` flags; every other ``-p``
becomes a query parameter. Placeholders naming the project, region or zone
are filled from ``gcloud config get`` when not given. The request is sent
with a bearer token (see :mod:`discoli.auth`) and the JSON response is
printed to stdout.

``--equivalent-curl`` prints the matching ``curl`` command instead, and
``--dry-run`` prints the request without sending it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import typer

from discoli.auth import AUTOFILL_KEYS, gcloud_config_value
from discoli.client import JSON_CONTENT_TYPE, dump_body
from discoli.commands.desc import path_placeholders
from discoli.exceptions import InvalidUsageError
from discoli.models import HTTPMethod, Method
from discoli.output import print_data

logger = logging.getLogger(__name__)

AutofillLookup = Callable[[str], Optional[str]]

_BODY_METHODS = (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def parse_params(values: list[str]) -> list[tuple[str, str]]:
    """Split ``key=value`` flags at the first ``=``.

    >>> parse_params(["datasetId=x", "filter=a=b"])
    [('datasetId', 'x'), ('filter', 'a=b')]

    Raises:
        InvalidUsageError: A value has no ``=``.
    """
    pairs: list[tuple[str, str]] = []
    for value in values:
        key, sep, rest = value.partition("=")
        if not sep:
            raise InvalidUsageError(f"No '=' found in '{value}'. Params must be '-p Key=Value'")
        pairs.append((key, rest))
    return pairs


def parse_headers(values: list[str]) -> dict[str, str]:
    """Split ``"Key: Value"`` flags at the first ``:``, trimming both sides.

    Raises:
        InvalidUsageError: A value has no ``:``.
    """
    headers: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition(":")
        if not sep:
            raise InvalidUsageError(
                f"No ':' found in '{value}'. HTTP headers must be in the form '-H \"Key: Value\"'"
            )
        headers[key.strip()] = rest.strip()
    return headers


def load_data(data: str) -> Any:
    """Parse a ``--data`` value: inline JSON, or ``@file`` holding JSON.

    Raises:
        InvalidUsageError: The file is unreadable or the JSON is invalid.
    """
    if data.startswith("@"):
        filename = data[1:]
        logger.debug("Reading data from file: %s", filename)
        try:
            content = Path(filename).read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidUsageError(f"Failed to read file '{filename}': {exc}") from exc
        source = f" in file '{filename}'"
    else:
        content = data
        source = ""
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Invalid JSON syntax{source}: {exc}") from exc


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def build_url(
    base_url: str,
    method: Method,
    params: list[tuple[str, str]],
    autofill: Optional[AutofillLookup] = None,
) -> str:
    """Return the absolute URL for *method*.

    Params naming a placeholder replace it; the rest are appended as query
    parameters in order. Remaining project/region/zone placeholders are
    looked up once per gcloud key with *autofill* (default
    :func:`~discoli.auth.gcloud_config_value`). A placeholder nobody
    fills is left in the URL, and the server rejects the request.
    """
    lookup = autofill or gcloud_config_value
    path = method.flat_path
    query: list[tuple[str, str]] = []
    for key, value in params:
        token = "{" + key + "}"
        if token in path:
            path = path.replace(token, value)
        elif "{+" + key + "}" in path:
            path = path.replace("{+" + key + "}", value)
        else:
            query.append((key, value))

    resolved: dict[str, Optional[str]] = {}
    for name in path_placeholders(path):
        gcloud_key = AUTOFILL_KEYS.get(name)
        if gcloud_key is None:
            continue
        if gcloud_key not in resolved:
            resolved[gcloud_key] = lookup(gcloud_key)
        value = resolved[gcloud_key]
        if value:
            path = path.replace("{" + name + "}", value)

    url = f"{base_url}{path}"
    if query:
        url = f"{url}?{urlencode(query)}"
    logger.debug("Built URL: %s", url)
    return url


def generate_curl(
    http_method: HTTPMethod,
    url: str,
    headers: dict[str, str],
    payload: Any = None,
) -> str:
    """Return a ``curl`` command equivalent to the request.

    The authorization and content-type headers are added unless *headers*
    already set them. A non-empty payload is pretty-printed on its own lines.
    """
    parts = [f"curl -X {http_method.value}"]
    for key, value in headers.items():
        parts.append(f'-H "{key}: {value}"')

    supplied = {key.lower() for key in headers}
    if "authorization" not in supplied:
        parts.append('-H "Authorization: Bearer $(gcloud auth print-access-token)"')
    if "content-type" not in supplied:
        parts.append(f'-H "Content-Type: {JSON_CONTENT_TYPE}"')

    if payload is not None:
        pretty = json.dumps(payload, indent=2, ensure_ascii=False)
        if payload != {}:
            pretty = "\n" + pretty
        parts.append(f"-d '{pretty}'")

    parts.append(f'"{url}"')
    return " \\\n  ".join(parts)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def exec_command(
    service: str = typer.Argument(..., help="Service name or alias, optionally with ':version'."),
    resource: str = typer.Argument(
        ..., help="Resource path or dotted suffix (e.g. 'locations.clusters')."
    ),
    method: str = typer.Argument(..., help="Method to execute (e.g. 'create')."),
    param: Optional[list[str]] = typer.Option(
        None,
        "--param",
        "-p",
        help="Path placeholder or query parameter as key=value. Repeatable.",
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header as 'Key: Value'. Repeatable."
    ),
    data: Optional[str] = typer.Option(
        None,
        "--data",
        "-d",
        help="JSON body, or @file. POST/PUT/PATCH default to '{}'.",
    ),
    select: Optional[str] = typer.Option(
        None, "--select", help="Query used to choose among ambiguous resources."
    ),
    equivalent_curl: bool = typer.Option(
        False, "--equivalent-curl", help="Print the equivalent curl command and exit."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print the request without sending it."
    ),
) -> None:
    """Execute an API method.

    Example::

        discoli exec bq datasets list
        discoli exec gke clusters get -p locationsId=us-central1 -p clustersId=c1
        discoli exec sql instances insert -d @instance.json --dry-run
    """
    from discoli.auth import resolve_access_token
    from discoli.client import ApiClient, format_api_response
    from discoli.config import load_global_config
    from discoli.resolver import find_method, find_resource
    from discoli.store import ensure_api

    api = ensure_api(service)
    node = find_resource(api, resource, hint=select)
    target = find_method(node, method)
    logger.debug("Found method: %s %s", target.name, target.flat_path)

    if not target.executable:
        raise InvalidUsageError(
            f"Method '{target.name}' uses unsupported HTTP method '{target.http_method}'"
        )
    verb = HTTPMethod(target.http_method)

    params = parse_params(param or [])
    headers = parse_headers(header or [])
    payload = load_data(data) if data is not None else None
    url = build_url(api.base_url, target, params)

    if equivalent_curl:
        print_data(generate_curl(verb, url, headers, payload))
        return

    if payload is None and verb in _BODY_METHODS:
        payload = {}
    body = dump_body(payload) if payload is not None else None

    config = load_global_config()
    token = None
    if not dry_run and "authorization" not in {k.lower() for k in headers}:
        token = resolve_access_token()

    with ApiClient(config.request, token=token, dry_run=dry_run) as client:
        response = client.send(verb, url, headers=headers, body=body)
    format_api_response(response)
