"""Persist finished resource trees and prepare them on first use.

Building a tree means fetching a discovery document (often several MB) and,
for flat services, rebuilding its hierarchy. The result is stored as JSON
under :func:`~discoli.config.get_apis_dir` so later commands only read a
file. A missing tree is built on demand by :func:`ensure_api`; ``discoli
update`` rebuilds them explicitly.

Writes are atomic. Two processes preparing the same service both build the
same tree and the last rename wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from discoli.catalog import lookup_service
from discoli.config import api_file_path, atomic_write, get_cache_dir, load_global_config
from discoli.discovery.loader import DocumentCache, get_document
from discoli.discovery.normalizer import build_api
from discoli.exceptions import ConfigError
from discoli.models import Api

logger = logging.getLogger(__name__)


def save_api(api: Api, path: Path) -> None:
    """Serialise *api* to *path* atomically."""
    atomic_write(path, api.model_dump_json(exclude_none=True))
    logger.debug("Stored %s at %s", api.id, path)


def load_api(path: Path) -> Api:
    """Load a stored tree.

    Raises:
        ConfigError: The file is unreadable or does not hold a valid tree.
    """
    try:
        return Api.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        raise ConfigError(f"Failed to load stored API tree at {path}: {exc}") from exc


def prepare_api(
    name: str,
    version: str,
    path: Path,
    client: Optional[httpx.Client] = None,
    refresh: bool = False,
) -> Api:
    """Fetch, build and store the tree for ``name:version``."""
    config = load_global_config()
    with DocumentCache(get_cache_dir(), config.cache) as cache:
        document = get_document(name, version, cache=cache, client=client, refresh=refresh)
    api = build_api(document)
    save_api(api, path)
    return api


def ensure_api(
    service_ref: str,
    refresh: bool = False,
    client: Optional[httpx.Client] = None,
) -> Api:
    """Return the tree for *service_ref*, building and storing it if needed.

    Args:
        service_ref: ``name``, ``alias`` or either with ``:version``.
        refresh: Rebuild even if a stored tree exists.
        client: Optional :class:`httpx.Client` used for discovery fetches.

    Raises:
        ServiceNotFound: *service_ref* is not in the catalog or directory.
        DiscoveryError: The document could not be fetched or normalized.
        StructuralInconsistency: The hierarchy could not be rebuilt.
    """
    name, version = lookup_service(service_ref)
    path = api_file_path(name, version)
    if path.is_file() and not refresh:
        return load_api(path)
    logger.debug("No stored tree for %s:%s, preparing it", name, version)
    return prepare_api(name, version, path, client=client, refresh=refresh)
