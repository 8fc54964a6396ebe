"""``discoli desc`` -- describe a service, a resource, or a method.

The output is a YAML document (JSON with ``--json``) whose shape depends on
how many arguments are given::

    discoli desc container                                  # service summary
    discoli desc container clusters                         # resource summary
    discoli desc container locations.clusters create        # method detail

Method detail includes everything needed to build a ``discoli exec`` call:
the request URL, the placeholders ``exec`` fills from gcloud, the ``-p``
flags the user must pass, a minimal ``--data`` body for verbs that take one,
and a search link into the published API reference.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import quote

import typer
import yaml

from discoli.auth import AUTOFILL_KEYS
from discoli.models import Api, HTTPMethod, Method, Resource
from discoli.output import OutputFormat, get_output

logger = logging.getLogger(__name__)

DOCS_SEARCH_URL = "https://cloud.google.com/s/results/{service}/docs?q={query}"
UNSUPPORTED_PLACEHOLDER = "<<See API Reference for details>>"

_PLACEHOLDER_RE = re.compile(r"\{\+?([^}]+)\}")
_BODY_METHODS = (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


# ---------------------------------------------------------------------------
# Method helpers
# ---------------------------------------------------------------------------


def path_placeholders(flat_path: str) -> list[str]:
    """Names of the ``{placeholder}`` tokens in *flat_path*, in order.

    >>> path_placeholders("v1/projects/{projectsId}/locations/{locationsId}/clusters")
    ['projectsId', 'locationsId']
    """
    return _PLACEHOLDER_RE.findall(flat_path)


def autofill_params(method: Method) -> list[str]:
    """Placeholders of *method* that ``discoli exec`` fills from gcloud config."""
    return [p for p in path_placeholders(method.flat_path) if p in AUTOFILL_KEYS]


def required_params(method: Method) -> list[str]:
    """Path placeholders the user must pass, followed by required query params."""
    autofill = set(autofill_params(method))
    names = [p for p in path_placeholders(method.flat_path) if p not in autofill]
    names.extend(qp.name for qp in method.query_params if qp.required)
    return names


def documentation_link(method: Method) -> Optional[str]:
    """Search URL for the method in the published API reference.

    Built from :attr:`~discoli.models.Method.doc_id` because reference pages
    use the id the discovery document declares.

    >>> documentation_link(Method(id="bigquery.datasets.list", name="list",
    ...     http_method="GET", flat_path="projects/{projectsId}/datasets"))
    'https://cloud.google.com/s/results/bigquery/docs?q=%22Method%3A%22%20datasets%20list'
    """
    parts = method.doc_id.split(".")
    if len(parts) < 2:
        return None
    service, resource_path, name = parts[0], ".".join(parts[1:-1]), parts[-1]
    query = f'"Method:" {resource_path} {name}'
    return DOCS_SEARCH_URL.format(service=service, query=quote(query, safe=""))


def _is_required(method: Method, field: str, prop: dict[str, Any], only_prop: bool) -> bool:
    """Decide whether a request body field belongs in the minimal payload.

    Read-only fields are never sent. A description beginning with "Output
    only" or "Optional" vetoes every other signal.
    """
    if prop.get("readOnly"):
        return False
    description = prop.get("description") or ""
    lowered = description.lower()
    optional = lowered.startswith("output only") or lowered.startswith("optional")
    if optional:
        return False
    if only_prop:
        return True
    if "Required" in description or description.startswith("Identifier."):
        return True
    # compute and storage annotate required fields per method id
    required_for = (prop.get("annotations") or {}).get("required") or []
    return method.original_id is not None and method.original_id in required_for


def minimum_payload(
    method: Method,
    schema: dict[str, Any],
    schemas: dict[str, Any],
    _seen: Optional[frozenset[str]] = None,
) -> dict[str, Any]:
    """Build a JSON template holding placeholder values for required fields.

    Strings become ``""``, integers ``0``, booleans ``false``; a ``$ref``
    is expanded recursively. Anything else, including a reference cycle,
    becomes :data:`UNSUPPORTED_PLACEHOLDER`.
    """
    seen = _seen or frozenset()
    properties = schema.get("properties") or {}
    payload: dict[str, Any] = {}
    for field, prop in properties.items():
        if not _is_required(method, field, prop, len(properties) == 1):
            continue
        logger.debug("Required property '%s': %s", field, prop.get("description"))

        kind = prop.get("type")
        ref = prop.get("$ref")
        if kind == "string":
            payload[field] = ""
        elif kind == "integer":
            payload[field] = 0
        elif kind == "boolean":
            payload[field] = False
        elif kind is None and ref in schemas and ref not in seen:
            payload[field] = minimum_payload(method, schemas[ref], schemas, seen | {ref})
        else:
            payload[field] = UNSUPPORTED_PLACEHOLDER
    return payload


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------


def describe_service(api: Api) -> dict[str, Any]:
    return {
        "service": api.name,
        "version": api.version,
        "revision": api.revision,
        "base_url": api.base_url,
        "top_level_resources": [r.name for r in api.resources],
    }


def describe_resource(resource: Resource) -> dict[str, Any]:
    description: dict[str, Any] = {
        "resource_name": resource.name,
        "resource_path": resource.path,
        "parent_path": resource.parent_path or "N/A",
        "methods": resource.method_names(),
    }
    if resource.resources:
        description["child_resources"] = [r.name for r in resource.resources]
    return description


def describe_method(api: Api, method: Method) -> dict[str, Any]:
    """Everything needed to call *method* with ``discoli exec``."""
    description: dict[str, Any] = {
        "method_name": method.name,
        "method_id": method.id,
    }
    if method.original_id:
        description["original_method_id"] = method.original_id
    description["http_method"] = method.http_method
    description["request_url"] = f"{api.base_url}{method.flat_path}"
    description["autofill_params"] = autofill_params(method)

    required = required_params(method)
    description["required_params"] = (
        " ".join(f'-p {name}=""' for name in required) if required else None
    )

    if method.http_method in _BODY_METHODS:
        payload: dict[str, Any] = {}
        if method.request_schema is not None:
            payload = minimum_payload(method, method.request_schema, api.schemas)
        description["minimum_data"] = payload

    if method.query_params:
        description["query_params"] = [
            {"name": qp.name, "required": qp.required, "description": qp.description}
            for qp in method.query_params
        ]
    description["api_reference"] = documentation_link(method)
    return description


def _emit(description: dict[str, Any]) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(description)
        return
    output.print_document(
        yaml.safe_dump(description, sort_keys=False, allow_unicode=True, width=100).rstrip(),
        "yaml",
    )


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def desc_command(
    service: str = typer.Argument(..., help="Service name or alias, optionally with ':version'."),
    resource: Optional[str] = typer.Argument(
        None, help="Resource path or dotted suffix (e.g. 'locations.clusters')."
    ),
    method: Optional[str] = typer.Argument(None, help="Method name (e.g. 'create')."),
    select: Optional[str] = typer.Option(
        None, "--select", help="Query used to choose among ambiguous resources."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", help="Rebuild the stored tree before describing."
    ),
) -> None:
    """Describe a service, a resource, or a method.

    Example::

        discoli desc bq
        discoli desc bq datasets
        discoli desc bq datasets insert
    """
    from discoli.resolver import find_method, find_resource
    from discoli.store import ensure_api

    api = ensure_api(service, refresh=refresh)
    if resource is None:
        _emit(describe_service(api))
        return

    node = find_resource(api, resource, hint=select)
    if method is None:
        _emit(describe_resource(node))
        return

    _emit(describe_method(api, find_method(node, method)))
