"""Resolve user-typed resource paths and method names against an Api tree."""

from __future__ import annotations

import logging
from typing import Optional

from discoli.exceptions import MethodNotFound, ResourceNotFound, SelectionFailed
from discoli.models import Api, Method, Resource
from discoli.resolver.strategies import strategy_for
from discoli.tree import iter_resources

logger = logging.getLogger(__name__)


def path_matches(path: str, suffix: str) -> bool:
    """Return ``True`` if *path* ends with *suffix* on a label boundary.

    >>> path_matches("container.projects.locations.clusters", "locations.clusters")
    True
    >>> path_matches("container.projects.zclusters", "clusters")
    False
    """
    return path == suffix or path.endswith("." + suffix)


def find_candidates(api: Api, path_suffix: str) -> list[Resource]:
    """Collect every resource whose path ends with *path_suffix*, depth-first."""
    return [
        r
        for r in iter_resources(api.resources)
        if r.path is not None and path_matches(r.path, path_suffix)
    ]


def find_resource(api: Api, path_suffix: str, hint: Optional[str] = None) -> Resource:
    """Find the single resource addressed by *path_suffix*.

    When several resources match, the strategy registered for ``api.id``
    picks one (see :mod:`discoli.resolver.strategies`).

    Args:
        api: The tree to search.
        path_suffix: Dotted path typed by the user, e.g. ``"locations.clusters"``
            or a full canonical path.
        hint: Query string passed to the strategy instead of *path_suffix*.

    Returns:
        The selected resource.

    Raises:
        ResourceNotFound: No resource path ends with *path_suffix*.
        SelectionFailed: The strategy did not return one of the candidates.
    """
    candidates = find_candidates(api, path_suffix)
    if not candidates:
        raise ResourceNotFound(path_suffix, api.id)
    if len(candidates) == 1:
        return candidates[0]

    logger.debug(
        "Resource '%s' is ambiguous. Candidates: %s",
        path_suffix,
        [r.path for r in candidates],
    )
    selected = strategy_for(api.id)(candidates, hint or path_suffix)
    if selected is None or not any(selected is c for c in candidates):
        raise SelectionFailed(path_suffix)
    return selected


def find_method(resource: Resource, method_name: str) -> Method:
    """Return the method named exactly *method_name*.

    Raises:
        MethodNotFound: The resource has no such method.
    """
    for method in resource.methods:
        if method.name == method_name:
            return method
    raise MethodNotFound(resource.path or resource.name, method_name)
