"""Per-service rules for choosing one resource among several matches.

Resource names repeat across branches (spanner alone has six ``operations``
resources), so a short path typed by the user can match several resources.
A strategy is a function ``(candidates, query) -> Resource`` registered in
:data:`SELECTION_STRATEGIES` under an Api id. ``candidates`` are in
depth-first traversal order and ``query`` is the path the user typed. A
strategy must return one of the candidates.

Services without an entry use :func:`default_strategy`, which returns the
last candidate and warns that the choice is arbitrary.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from discoli.models import Resource

logger = logging.getLogger(__name__)

SelectionStrategy = Callable[[list[Resource], str], Optional[Resource]]

AMBIGUITY_WARNING = (
    "Found multiple resources, so returning the last one (--verbose for details). "
    "Specify more detailed path like 'locations.clusters' instead of 'clusters' "
    "to resolve ambiguity."
)


def _first_containing(candidates: list[Resource], fragment: str) -> Optional[Resource]:
    return next((r for r in candidates if fragment in (r.path or "")), None)


def _last(candidates: list[Resource]) -> Optional[Resource]:
    return candidates[-1] if candidates else None


def select_container(candidates: list[Resource], query: str) -> Optional[Resource]:
    """Prefer regional clusters and node pools (``locations``) over zonal ones.

    ::

        projects
          locations
            clusters      <- selected
              nodePools   <- selected
          zones
            clusters
              nodePools

    Without a ``locations.clusters`` candidate the first one is returned,
    where the other strategies fall back to the last.
    """
    logger.debug("Preferring regional clusters (locations.clusters) over zonal ones")
    chosen = _first_containing(candidates, "container.projects.locations.clusters")
    return chosen or (candidates[0] if candidates else None)


_DATAFLOW_REGIONAL_SUFFIXES = ("templates", "jobs", "debug", "messages", "workItems")


def select_dataflow(candidates: list[Resource], query: str) -> Optional[Resource]:
    """Prefer regional endpoints for jobs and templates; ``locations.snapshots`` otherwise.

    Jobs, their sub-resources and templates exist both under ``projects`` and
    ``projects.locations``; the regional variant is the recommended one.
    Snapshots are served from ``locations.snapshots`` by ``gcloud``.
    """
    if query.endswith(_DATAFLOW_REGIONAL_SUFFIXES):
        logger.debug("Preferring regional dataflow resources for '%s'", query)
        chosen = _first_containing(candidates, "locations")
    else:
        logger.debug("Preferring 'locations.snapshots' for '%s'", query)
        chosen = _first_containing(candidates, "locations.snapshots")
    return chosen or _last(candidates)


def select_spanner(candidates: list[Resource], query: str) -> Optional[Resource]:
    """Pick ``instances.operations`` among spanner's six ``operations`` resources."""
    return _first_containing(candidates, "instances.operations") or _last(candidates)


def default_strategy(candidates: list[Resource], query: str) -> Optional[Resource]:
    """Return the last candidate and warn that the choice is arbitrary."""
    logger.warning(AMBIGUITY_WARNING)
    return _last(candidates)


SELECTION_STRATEGIES: dict[str, SelectionStrategy] = {
    "container:v1": select_container,
    "dataflow:v1b3": select_dataflow,
    "spanner:v1": select_spanner,
}


def register_strategy(api_id: str, strategy: SelectionStrategy) -> None:
    """Register (or replace) the selection strategy for *api_id*."""
    SELECTION_STRATEGIES[api_id] = strategy


def strategy_for(api_id: str) -> SelectionStrategy:
    """Return the strategy registered for *api_id*, or :func:`default_strategy`."""
    return SELECTION_STRATEGIES.get(api_id, default_strategy)
