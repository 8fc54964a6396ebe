"""Rebuild the resource hierarchy of services whose discovery documents are flat.

Some services declare every resource at the top level even though their URL
templates nest them (bigquery's ``tables`` lives under
``projects/{p}/datasets/{d}``). For those services, listed in
:data:`FLAT_SERVICES`, :func:`rebuild_hierarchy` runs two phases:

1. **Path inference** (:func:`update_resource_paths`) -- every top-level
   resource gets an ancestor chain inferred from its methods' URL templates,
   corrected by :mod:`~discoli.hierarchy.overrides`. Its ``path``,
   ``parent_path`` and method ids are rewritten accordingly; the previous
   method id is kept in ``original_id``. Resources nested in the source
   document keep their nesting.
2. **Reassembly** -- resources that now carry a ``parent_path`` are grafted
   under the node whose ``path`` equals it. Pending resources whose parent
   is not in the tree yet are retried after the others. The number of failed
   attempts is bounded, so a dangling parent path raises
   :class:`~discoli.exceptions.StructuralInconsistency` instead of looping.

Both phases work on a deep copy; the input :class:`~discoli.models.Api` is
never mutated.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional

from discoli.exceptions import StructuralInconsistency
from discoli.hierarchy.overrides import apply_service_override
from discoli.hierarchy.segments import is_valid_template, join_path, segments
from discoli.models import Api, Method, Resource

logger = logging.getLogger(__name__)

FLAT_SERVICES: frozenset[str] = frozenset(
    {
        "bigquery:v2",
        "compute:v1",
        "sqladmin:v1",
        "sqladmin:v1beta4",
        "storage:v1",
    }
)
"""Api ids whose discovery documents declare resources flat."""


def needs_rebuild(api_id: str) -> bool:
    """Return ``True`` if *api_id* is a flat service that must be rebuilt."""
    return api_id in FLAT_SERVICES


def _split_api_id(api_id: str) -> tuple[str, str]:
    service, _, version = api_id.partition(":")
    return service, version


# ---------------------------------------------------------------------------
# Phase 1: path inference
# ---------------------------------------------------------------------------


def infer_ancestors(
    service: str, version: str, resource_name: str, methods: list[Method]
) -> list[str]:
    """Infer the ancestor names of a resource from its methods' URL templates.

    Distinct valid templates are tokenized in method order; the first segment
    list that does not end with the resource's own name wins. The service
    override is applied to the result (even when no template qualified, so
    fixed ancestor chains still apply).

    Args:
        service: Service name, e.g. ``"bigquery"``.
        version: Version token dropped from the templates, e.g. ``"v2"``.
        resource_name: The resource being placed.
        methods: The resource's own methods.

    Returns:
        Ancestor names, outermost first. Empty for a top-level resource.
    """
    seen: set[str] = set()
    chosen: list[str] = []
    for method in methods:
        template = method.flat_path
        if template in seen or not is_valid_template(service, template):
            continue
        seen.add(template)
        candidate = segments(template, version)
        if not candidate or candidate[-1] != resource_name:
            chosen = candidate
            break
    return apply_service_override(service, resource_name, chosen)


def _update_resource(
    resource: Resource,
    service: str,
    version: str,
    inherited_parent: Optional[str],
) -> None:
    if inherited_parent is not None:
        parent_path: Optional[str] = inherited_parent
    else:
        ancestors = infer_ancestors(service, version, resource.name, resource.methods)
        parent_path = join_path(service, *ancestors) if ancestors else None

    path = join_path(parent_path or service, resource.name)
    for method in resource.methods:
        method.original_id = method.id
        method.id = join_path(path, method.name)

    for child in resource.resources or []:
        _update_resource(child, service, version, path)

    logger.debug(
        "Updated '%s': path=%s parent_path=%s", resource.name, path, parent_path
    )
    resource.path = path
    resource.parent_path = parent_path


def update_resource_paths(api: Api) -> Api:
    """Return a copy of *api* with inferred paths, parent paths and method ids.

    The returned forest keeps the source layout; resources are not moved yet.
    """
    updated = api.model_copy(deep=True)
    service, version = _split_api_id(updated.id)
    for resource in updated.resources:
        _update_resource(resource, service, version, None)
    return updated


# ---------------------------------------------------------------------------
# Phase 2: reassembly
# ---------------------------------------------------------------------------


def _merge_resource(target: Resource, incoming: Resource) -> None:
    """Fold *incoming* into *target*, which has the same path.

    Methods are unioned by name. Sub-resources are matched by path; a
    collision merges recursively, anything else is appended.
    """
    present = set(target.method_names())
    for method in incoming.methods:
        if method.name not in present:
            target.methods.append(method)
            present.add(method.name)

    if not incoming.resources:
        return
    if target.resources is None:
        target.resources = []
    for sub in incoming.resources:
        existing = next((r for r in target.resources if r.path == sub.path), None)
        if existing is not None:
            _merge_resource(existing, sub)
        else:
            target.resources.append(sub)


def _is_path_prefix(prefix: str, dotted: str) -> bool:
    return dotted == prefix or dotted.startswith(prefix + ".")


def insert_child_resource(resources: list[Resource], child: Resource) -> bool:
    """Graft *child* under the node whose path equals ``child.parent_path``.

    Branches whose path is not a prefix of the target parent path are not
    searched. When the parent already holds a sub-resource with the same
    path, the child is merged into it (methods and sub-resources) instead
    of adding a second node.

    Returns:
        ``True`` if the child was placed, ``False`` if no parent was found.
    """
    target = child.parent_path
    if target is None:
        return False
    for resource in resources:
        if resource.path is None:
            continue
        if resource.path == target:
            siblings = resource.resources
            if siblings is None:
                siblings = resource.resources = []
            existing = next((r for r in siblings if r.path == child.path), None)
            if existing is not None:
                logger.debug("Merging '%s' into the existing node", child.path)
                _merge_resource(existing, child)
            else:
                siblings.append(child)
            return True
        if resource.resources and _is_path_prefix(resource.path, target):
            if insert_child_resource(resource.resources, child):
                return True
    return False


def reassemble(resources: list[Resource]) -> list[Resource]:
    """Build the final forest from resources with updated parent paths.

    Parent-less resources form the initial forest. The rest are placed from a
    worklist: the last entry is tried first, and an entry whose parent is not
    in the tree yet goes back to the front. At most ``max(1, n) ** 2`` failed
    attempts are allowed for an initial worklist of ``n`` entries.

    Raises:
        StructuralInconsistency: A resource's parent path never appears.
    """
    forest = [r for r in resources if r.parent_path is None]
    pending = deque(r for r in resources if r.parent_path is not None)
    logger.debug(
        "Reassembling %d top-level and %d pending resources", len(forest), len(pending)
    )

    max_failures = max(1, len(pending)) ** 2
    failures = 0
    while pending:
        child = pending.pop()
        if insert_child_resource(forest, child):
            continue
        failures += 1
        if failures > max_failures:
            raise StructuralInconsistency(child.name, child.parent_path)
        pending.appendleft(child)
    return forest


def rebuild_hierarchy(api: Api) -> Api:
    """Infer and rebuild the resource hierarchy of a flat service.

    Args:
        api: A normalized :class:`~discoli.models.Api`. It is not modified.

    Returns:
        A new Api whose resources are nested according to their URL
        templates and whose method ids are rewritten.

    Raises:
        StructuralInconsistency: Reassembly could not place a resource.

    Example::

        api = normalize_document(load_document("bigquery_v2.json"))
        rebuilt = rebuild_hierarchy(api)
        # datasets now lives at "bigquery.projects.datasets"
    """
    logger.debug("Rebuilding resource hierarchy of %s", api.id)
    updated = update_resource_paths(api)
    updated.resources = reassemble(updated.resources)
    return updated
