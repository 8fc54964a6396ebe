"""``discoli update`` -- rebuild and store resource trees."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from discoli.catalog import SUPPORTED_SERVICES, lookup_service
from discoli.exceptions import DiscoliError, InvalidUsageError
from discoli.output import get_output
from discoli.tree import iter_resources

logger = logging.getLogger(__name__)


def update_targets(services: list[str], all_services: bool) -> list[tuple[str, str]]:
    """Resolve the ``(name, version)`` pairs to rebuild.

    With *all_services*, every version of every catalog entry is included.

    Raises:
        InvalidUsageError: Neither services nor ``--all`` were given.
        ServiceNotFound: A reference is not in the catalog.
    """
    if all_services:
        return [(s.name, v) for s in SUPPORTED_SERVICES for v in s.versions]
    if not services:
        raise InvalidUsageError("Specify at least one service, or pass --all.")
    targets: list[tuple[str, str]] = []
    for ref in services:
        target = lookup_service(ref)
        if target not in targets:
            targets.append(target)
    return targets


def update_command(
    services: Optional[list[str]] = typer.Argument(
        None, help="Services to rebuild (name or alias, optionally ':version')."
    ),
    all_services: bool = typer.Option(
        False, "--all", "-A", help="Rebuild every version of every catalog service."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", help="Refetch discovery documents instead of using the cache."
    ),
) -> None:
    """Fetch discovery documents, rebuild their trees, and store them.

    With ``--all`` a failing service is reported and the rest continue;
    the command then exits with the last failure's code.

    Example::

        discoli update gke bq
        discoli update --all --refresh
    """
    from discoli.config import api_file_path
    from discoli.store import prepare_api

    output = get_output()
    targets = update_targets(services or [], all_services)
    logger.debug("Update targets: %s", targets)
    failure: Optional[DiscoliError] = None

    for name, version in targets:
        output.progress(f"Updating {name}:{version}...")
        try:
            api = prepare_api(name, version, api_file_path(name, version), refresh=refresh)
        except DiscoliError as exc:
            if not all_services:
                raise
            output.error(f"{name}:{version}: {exc}")
            failure = exc
            continue
        count = sum(1 for _ in iter_resources(api.resources))
        output.success(f"Updated {api.id} ({count} resources)")

    if failure is not None:
        raise typer.Exit(code=failure.exit_code)

