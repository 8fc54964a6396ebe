"""Per-service corrections for inferred ancestor chains.

Most discovery documents name URL segments after their resources, so the
segments returned by :func:`~discoli.hierarchy.segments.segments` are the
ancestor names as-is. A few services do not:

* ``storage`` abbreviates ``buckets`` and ``objects`` to ``b`` and ``o`` and
  omits the implicit ``projects`` root.
* ``compute`` has URL-only segments (``global``, ``locations``) and several
  resources whose templates say nothing reliable about their parents.
* ``sqladmin`` (v1beta4) prefixes templates with a stray ``sql`` segment.

Each correction is a function ``(resource_name, segments) -> segments``
registered in :data:`SEGMENT_OVERRIDES` under the service name. Services
without an entry pass through unchanged.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

SegmentOverride = Callable[[str, list[str]], list[str]]


# --- storage ---

_STORAGE_FIXED_PARENTS: dict[str, list[str]] = {
    "buckets": ["projects"],
    "objects": ["projects", "buckets"],
    "folders": ["projects", "buckets"],
    "managedFolders": ["projects", "buckets"],
}

_STORAGE_ABBREVIATIONS = {"b": "buckets", "o": "objects"}


def storage_override(resource_name: str, segments: list[str]) -> list[str]:
    """Expand ``b``/``o`` and root everything at ``projects``.

    >>> storage_override("objectAccessControls", ["b", "o"])
    ['projects', 'buckets', 'objects']
    >>> storage_override("buckets", ["any", "thing"])
    ['projects']
    """
    if resource_name in _STORAGE_FIXED_PARENTS:
        return list(_STORAGE_FIXED_PARENTS[resource_name])
    if resource_name == "projects":
        return list(segments)
    return ["projects"] + [_STORAGE_ABBREVIATIONS.get(s, s) for s in segments]


# --- compute ---

_COMPUTE_FIXED_PARENTS: dict[str, list[str]] = {
    "globalOrganizationOperations": [],
    "globalAddresses": ["projects"],
    "globalNetworkEndpointGroups": ["projects"],
    "globalOperations": ["projects"],
    "globalForwardingRules": ["projects"],
    "networkFirewallPolicies": ["projects"],
    "instanceGroupManagerResizeRequests": ["projects", "zones", "instanceGroupManagers"],
    "zoneOperations": ["projects", "zones"],
}

_COMPUTE_URL_ONLY_SEGMENTS = frozenset({"global", "locations"})


def compute_override(resource_name: str, segments: list[str]) -> list[str]:
    """Pin resources with unreliable templates and drop URL-only segments.

    >>> compute_override("regionDisks", ["projects", "regions"])
    ['projects', 'regions']
    >>> compute_override("firewalls", ["projects", "global"])
    ['projects']
    """
    if resource_name in _COMPUTE_FIXED_PARENTS:
        return list(_COMPUTE_FIXED_PARENTS[resource_name])
    if resource_name.startswith("region") and resource_name != "regions":
        return ["projects", "regions"]
    return [s for s in segments if s not in _COMPUTE_URL_ONLY_SEGMENTS]


# --- sqladmin ---


def sqladmin_override(resource_name: str, segments: list[str]) -> list[str]:
    """Drop the ``sql`` prefix segment used by v1beta4 templates."""
    return [s for s in segments if s != "sql"]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

SEGMENT_OVERRIDES: dict[str, SegmentOverride] = {
    "storage": storage_override,
    "compute": compute_override,
    "sqladmin": sqladmin_override,
}


def register_override(service: str, override: SegmentOverride) -> None:
    """Register (or replace) the segment correction for *service*."""
    if service in SEGMENT_OVERRIDES:
        logger.debug("Replacing segment override for '%s'", service)
    SEGMENT_OVERRIDES[service] = override


def apply_service_override(
    service: str, resource_name: str, segments: list[str]
) -> list[str]:
    """Apply the registered correction for *service*, if any.

    Args:
        service: Service name (``"compute"``, not ``"compute:v1"``).
        resource_name: Local name of the resource being placed.
        segments: Ancestor segments inferred from its URL templates.

    Returns:
        The corrected ancestor chain. Unknown services get *segments* back.
    """
    override = SEGMENT_OVERRIDES.get(service)
    if override is None:
        return list(segments)
    return override(resource_name, list(segments))
