"""Convert a raw discovery document into a :class:`~discoli.models.Api` tree.

The raw document is the JSON returned by a service's ``discoveryRestUrl``::

    {
      "id": "container:v1", "name": "container", "version": "v1",
      "baseUrl": "https://container.googleapis.com/",
      "schemas": {"Cluster": {...}},
      "resources": {
        "projects": {
          "resources": {
            "locations": {
              "resources": {
                "clusters": {
                  "methods": {
                    "get": {
                      "id": "container.projects.locations.clusters.get",
                      "httpMethod": "GET",
                      "path": "v1/{+name}",
                      "flatPath": "v1/projects/{projectsId}/locations/{locationsId}/clusters/{clustersId}",
                      "parameters": {...}
                    }
                  }
                }
              }
            }
          }
        }
      }
    }

Normalization maps methods 1:1 and derives each resource's canonical path
from its first method's id. It does not infer hierarchy: for the services in
:data:`~discoli.hierarchy.rebuilder.FLAT_SERVICES` the result is flat, and
:func:`build_api` hands it to the rebuilder.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from discoli.exceptions import DiscoveryError
from discoli.hierarchy.rebuilder import needs_rebuild, rebuild_hierarchy
from discoli.hierarchy.segments import join_path, parent_of
from discoli.models import Api, Method, QueryParam, Resource

logger = logging.getLogger(__name__)

_REQUIRED_DESCRIPTION = re.compile(r"^\s*required\.", re.IGNORECASE)

_BODYLESS_METHODS = frozenset({"GET", "DELETE"})


def _is_required(param: dict[str, Any]) -> bool:
    """Query params are often marked required only in prose ("Required. The ...")."""
    flag = param.get("required")
    if flag is not None:
        return bool(flag)
    return bool(_REQUIRED_DESCRIPTION.match(param.get("description") or ""))


def collect_query_params(parameters: Optional[dict[str, Any]]) -> list[QueryParam]:
    """Extract query parameters, skipping path params and dotted sub-field names."""
    result: list[QueryParam] = []
    for name, param in (parameters or {}).items():
        if param.get("location") != "query" or "." in name:
            continue
        result.append(
            QueryParam(
                name=name,
                description=param.get("description"),
                required=_is_required(param),
            )
        )
    return result


def _request_schema(
    raw: dict[str, Any], http_method: str, schemas: dict[str, Any]
) -> Optional[dict[str, Any]]:
    if http_method in _BODYLESS_METHODS:
        return None
    ref = (raw.get("request") or {}).get("$ref")
    if not ref:
        return None
    schema = schemas.get(ref)
    if schema is None:
        logger.debug("Request schema '%s' is not declared in the document", ref)
    return schema


def convert_method(
    name: str, raw: dict[str, Any], schemas: dict[str, Any]
) -> Method:
    """Convert one raw method entry. The declared verb is kept as written.

    Raises:
        DiscoveryError: The method has no id, verb, or URL template.
    """
    method_id = raw.get("id")
    template = raw.get("flatPath") or raw.get("path")
    if not method_id:
        raise DiscoveryError(f"Method '{name}' has no id")
    if not template:
        raise DiscoveryError(
            f"Both flatPath and path are missing in the method: {method_id}"
        )
    http_method = str(raw.get("httpMethod", "")).upper()
    if not http_method:
        raise DiscoveryError(f"HTTP method is missing in the method: {method_id}")

    return Method(
        id=method_id,
        name=name,
        http_method=http_method,
        flat_path=template,
        description=raw.get("description"),
        query_params=collect_query_params(raw.get("parameters")),
        request_schema=_request_schema(raw, http_method, schemas),
    )


def convert_resource(
    service: str,
    name: str,
    raw: dict[str, Any],
    parent_path: Optional[str],
    schemas: dict[str, Any],
) -> Resource:
    """Convert one raw resource entry and its sub-resources recursively."""
    methods = [
        convert_method(method_name, method, schemas)
        for method_name, method in (raw.get("methods") or {}).items()
    ]
    if methods:
        path = parent_of(methods[0].id)
    else:
        path = join_path(parent_path or service, name)

    sub_resources = [
        convert_resource(service, sub_name, sub_raw, path, schemas)
        for sub_name, sub_raw in (raw.get("resources") or {}).items()
    ]
    return Resource(
        name=name,
        path=path,
        parent_path=parent_path,
        methods=methods,
        resources=sub_resources,
    )


def _base_url(document: dict[str, Any]) -> str:
    base_url = document.get("baseUrl")
    if base_url:
        return base_url
    return (document.get("rootUrl") or "") + (document.get("servicePath") or "")


def normalize_document(document: dict[str, Any]) -> Api:
    """Convert a raw discovery document into an :class:`~discoli.models.Api`.

    Args:
        document: Parsed discovery document.

    Returns:
        The normalized tree. Resource and method order follows the document.

    Raises:
        DiscoveryError: Required top-level fields are missing or a method
            cannot be converted.
    """
    missing = [key for key in ("id", "name", "version") if not document.get(key)]
    if missing:
        raise DiscoveryError(
            f"Discovery document is missing required field(s): {', '.join(missing)}"
        )

    service = document["name"]
    schemas = document.get("schemas") or {}
    resources = [
        convert_resource(service, name, raw, None, schemas)
        for name, raw in (document.get("resources") or {}).items()
    ]
    try:
        return Api(
            id=document["id"],
            name=service,
            version=document["version"],
            title=document.get("title"),
            description=document.get("description"),
            revision=document.get("revision"),
            base_url=_base_url(document),
            documentation_link=document.get("documentationLink"),
            resources=resources,
            schemas=schemas,
        )
    except ValidationError as exc:
        raise DiscoveryError(f"Invalid discovery document '{document['id']}': {exc}") from exc


def build_api(document: dict[str, Any]) -> Api:
    """Normalize *document* and rebuild its hierarchy if the service is flat."""
    api = normalize_document(document)
    if needs_rebuild(api.id):
        return rebuild_hierarchy(api)
    return api
