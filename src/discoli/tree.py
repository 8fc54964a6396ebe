"""Read-only traversals over a resource tree."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Iterator

from discoli.models import Api, Resource


def iter_resources(resources: Iterable[Resource]) -> Iterator[Resource]:
    """Yield every resource depth-first, parents before their children."""
    for resource in resources:
        yield resource
        if resource.resources:
            yield from iter_resources(resource.resources)


def all_resource_paths(api: Api) -> list[tuple[str, str]]:
    """Return ``(name, path)`` for every resource that has a path."""
    return [(r.name, r.path) for r in iter_resources(api.resources) if r.path]


def duplicated_resources(api: Api) -> dict[str, list[str]]:
    """Return the resource names that occur more than once, with their paths."""
    by_name: dict[str, list[str]] = defaultdict(list)
    for name, path in all_resource_paths(api):
        by_name[name].append(path)
    return {name: paths for name, paths in by_name.items() if len(paths) > 1}


def resource_depth(resource: Resource) -> int:
    """Nesting depth below the service: ``svc.projects`` is 0, ``svc.projects.zones`` is 1."""
    if not resource.path:
        return 0
    return max(resource.path.count(".") - 1, 0)


def render_tree(resources: Iterable[Resource], indent: int = 0) -> str:
    """Render resource names as an indented tree, two spaces per level."""
    lines: list[str] = []
    for resource in resources:
        lines.append(" " * indent + resource.name)
        if resource.resources:
            lines.append(render_tree(resource.resources, indent + 2))
    return "\n".join(line for line in lines if line)
