"""``discoli list`` -- browse services, resources, and methods.

Output depends on how many arguments are given:

* no service -- the service catalog (one name per line, or a table with
  ``--long``);
* a service -- its resource tree (indented names, or a table with depth,
  path and methods with ``--long``; resource names that occur under more
  than one path are highlighted);
* a service and a resource -- the resource's methods.
"""

from __future__ import annotations

from typing import Optional

import typer

from discoli.catalog import SUPPORTED_SERVICES, SupportedService
from discoli.models import Api, Method, Resource
from discoli.output import get_output, print_data
from discoli.tree import duplicated_resources, iter_resources, render_tree, resource_depth

_SHOWN_METHODS = 5


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def _service_sort_key(field: str):  # noqa: ANN202
    keys = {
        "title": lambda s: s.title,
        "category": lambda s: s.category,
        "aliases": lambda s: s.aliases,
        "versions": lambda s: s.versions,
        "default_version": lambda s: s.default_version,
    }
    return keys.get(field, lambda s: s.name)


def service_line(service: SupportedService, aliases: bool, category: bool) -> str:
    """Format one catalog entry for the short listing.

    >>> from discoli.catalog import find_service
    >>> service_line(find_service("container"), aliases=True, category=True)
    '[Compute] Google Kubernetes Engine - container (gke)'
    """
    show_aliases = aliases and bool(service.aliases)
    alias_text = ", ".join(service.aliases)
    if show_aliases and category:
        return f"[{service.category}] {service.title} - {service.name} ({alias_text})"
    if show_aliases:
        return f"{service.name} ({alias_text})"
    if category:
        return f"[{service.category}] {service.title} - {service.name}"
    return service.name


def list_services(
    long: bool = False,
    aliases: bool = False,
    category: bool = False,
    sort: Optional[str] = None,
    reverse: bool = False,
) -> None:
    services = sorted(
        SUPPORTED_SERVICES, key=_service_sort_key(sort or "name"), reverse=reverse
    )
    if long:
        rows = [
            [
                s.name,
                s.title,
                s.category,
                ", ".join(s.aliases),
                ", ".join(s.versions),
                s.default_version,
            ]
            for s in services
        ]
        get_output().print_table(
            ["name", "title", "category", "aliases", "versions", "default_version"],
            rows,
            title=f"Services ({len(rows)})",
        )
        return
    for service in services:
        print_data(service_line(service, aliases, category))


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def _method_summary(resource: Resource, show_all: bool) -> str:
    names = sorted(resource.method_names(), key=lambda n: (len(n), n))
    if not show_all and len(names) > _SHOWN_METHODS:
        return ", ".join(names[:_SHOWN_METHODS]) + ", ..."
    return ", ".join(names)


def _resource_sort_key(field: str):  # noqa: ANN202
    keys = {
        "name": lambda r: (r.name, resource_depth(r), r.path or ""),
        "depth": lambda r: (resource_depth(r), r.name),
        "methods": lambda r: (len(r.methods), r.path or ""),
    }
    return keys.get(field, lambda r: r.path or "")


def resource_rows(
    api: Api,
    show_all: bool = False,
    sort: Optional[str] = None,
    reverse: bool = False,
) -> tuple[list[list[str]], set[int]]:
    """Build the long resource table and the indices of duplicated names.

    Rows are in tree order unless *sort* names ``name``, ``depth``,
    ``methods`` or ``path``.
    """
    resources = list(iter_resources(api.resources))
    if sort:
        resources.sort(key=_resource_sort_key(sort))
    if reverse:
        resources.reverse()

    duplicated = duplicated_resources(api)
    rows: list[list[str]] = []
    highlight: set[int] = set()
    for index, resource in enumerate(resources):
        if resource.name in duplicated:
            highlight.add(index)
        rows.append([
            resource.name,
            str(resource_depth(resource)),
            resource.path or "",
            str(len(resource.methods)),
            _method_summary(resource, show_all),
        ])
    return rows, highlight


def list_resources(
    api: Api,
    long: bool = False,
    show_all: bool = False,
    sort: Optional[str] = None,
    reverse: bool = False,
) -> None:
    if not long:
        tree = render_tree(api.resources)
        if tree:
            print_data(tree)
        return
    rows, highlight = resource_rows(api, show_all, sort, reverse)
    get_output().print_table(
        ["name", "depth", "resource_path", "method_count", "methods"],
        rows,
        title=f"{api.id} -- Resources ({len(rows)})",
        highlight=highlight,
    )


# ---------------------------------------------------------------------------
# Methods
# ---------------------------------------------------------------------------


def sort_methods(methods: list[Method], sort: Optional[str] = None, reverse: bool = False) -> list[Method]:
    """Sort by ``path`` (default, then verb), ``name``, or ``http`` (then path)."""
    field = sort or "path"
    if field == "name":
        key = lambda m: m.name  # noqa: E731
    elif field == "http":
        key = lambda m: (m.http_method, m.flat_path)  # noqa: E731
    else:
        key = lambda m: (m.flat_path, m.http_method)  # noqa: E731
    return sorted(methods, key=key, reverse=reverse)


def list_methods(
    resource: Resource,
    methods: list[Method],
    long: bool = False,
    sort: Optional[str] = None,
    reverse: bool = False,
) -> None:
    ordered = sort_methods(methods, sort, reverse)
    if long:
        rows = [[m.name, m.http_method, m.flat_path] for m in ordered]
        get_output().print_table(
            ["method_name", "http_method", "path"],
            rows,
            title=f"{resource.path} -- Methods ({len(rows)})",
        )
        return
    for method in ordered:
        print_data(method.name)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def list_command(
    service: Optional[str] = typer.Argument(
        None, help="Service name or alias. Omit to list the catalog."
    ),
    resource: Optional[str] = typer.Argument(
        None, help="Resource path or dotted suffix whose methods to list."
    ),
    method: Optional[str] = typer.Argument(None, help="Show only this method."),
    long: bool = typer.Option(False, "--long", "-l", help="Detailed table output."),
    show_all: bool = typer.Option(
        False, "--all", "-A", help="Show every method name in the resource table."
    ),
    aliases: bool = typer.Option(False, "--aliases", "-a", help="Show service aliases."),
    category: bool = typer.Option(
        False, "--category", "-c", help="Show service category and title."
    ),
    sort: Optional[str] = typer.Option(
        None,
        "--sort",
        "-S",
        help=(
            "Sort field. Services: name, title, category, aliases, versions. "
            "Resources (--long): name, depth, path, methods. Methods: name, http, path."
        ),
    ),
    reverse: bool = typer.Option(False, "--reverse", "-r", help="Reverse the sort order."),
    select: Optional[str] = typer.Option(
        None, "--select", help="Query used to choose among ambiguous resources."
    ),
) -> None:
    """List services, a service's resources, or a resource's methods.

    Example::

        discoli list --category
        discoli list gke --long --sort depth
        discoli list gke locations.clusters --long
    """
    from discoli.resolver import find_method, find_resource
    from discoli.store import ensure_api

    if service is None:
        list_services(long, aliases, category, sort, reverse)
        return

    api = ensure_api(service)
    if resource is None:
        list_resources(api, long, show_all, sort, reverse)
        return

    node = find_resource(api, resource, hint=select)
    methods = [find_method(node, method)] if method else list(node.methods)
    list_methods(node, methods, long, sort, reverse)
