"""Fetch discovery documents over HTTP or load them from local files.

Google publishes a directory of every discovery document at
:data:`DISCOVERY_URL`. Each directory item carries the ``discoveryRestUrl``
of one ``<name>:<version>`` document. This module handles:

* :func:`fetch_directory` / :func:`fetch_document` -- HTTP retrieval via
  :mod:`httpx` (30 s timeout, redirects followed).
* :func:`discovery_url_for` -- look up a service's document URL in the
  directory.
* :func:`load_document` -- read a local JSON or YAML file, for offline use.
* :class:`DocumentCache` -- a :mod:`diskcache` store of raw documents keyed
  by api id, so ``discoli update`` does not refetch unchanged documents
  within the TTL.

All failures surface as :class:`~discoli.exceptions.DiscoveryError`, except
a service missing from the directory, which is a
:class:`~discoli.exceptions.ServiceNotFound`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import diskcache
import httpx
import yaml

from discoli.exceptions import DiscoveryError, ServiceNotFound
from discoli.models import CacheConfig

logger = logging.getLogger(__name__)

DISCOVERY_URL = "https://discovery.googleapis.com/discovery/v1/apis"

_DIRECTORY_KEY = "__directory__"
_TIMEOUT = 30.0


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


def _get_json(url: str, client: Optional[httpx.Client] = None) -> dict[str, Any]:
    """GET *url* and decode the JSON object it returns."""
    logger.debug("Fetching %s", url)
    try:
        if client is not None:
            response = client.get(url)
        else:
            response = httpx.get(url, timeout=_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DiscoveryError(
            f"HTTP {exc.response.status_code} fetching discovery document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DiscoveryError(f"Failed to fetch {url}: {exc}") from exc

    return _parse_content(response.text, hint="json", source=url)


def fetch_directory(client: Optional[httpx.Client] = None) -> dict[str, Any]:
    """Fetch the discovery directory listing every published document.

    Args:
        client: Optional :class:`httpx.Client` to send the request with.

    Returns:
        The directory as a dict; documents are listed under ``"items"``.

    Raises:
        DiscoveryError: The directory could not be fetched or parsed.
    """
    return _get_json(DISCOVERY_URL, client)


def fetch_document(url: str, client: Optional[httpx.Client] = None) -> dict[str, Any]:
    """Fetch one discovery document from its ``discoveryRestUrl``.

    Raises:
        DiscoveryError: The document could not be fetched or parsed.
    """
    return _get_json(url, client)


def discovery_url_for(name: str, version: str, directory: dict[str, Any]) -> str:
    """Return the ``discoveryRestUrl`` of ``name:version`` in *directory*.

    Raises:
        ServiceNotFound: The directory has no such document.
    """
    for item in directory.get("items") or []:
        if item.get("name") == name and item.get("version") == version:
            url = item.get("discoveryRestUrl")
            if url:
                return url
    raise ServiceNotFound(
        f"{name}:{version}", "not listed in the discovery directory"
    )


# ---------------------------------------------------------------------------
# Local files
# ---------------------------------------------------------------------------


def load_document(source: str | Path) -> dict[str, Any]:
    """Load a discovery document from a local JSON or YAML file.

    Raises:
        DiscoveryError: The file is missing, empty, or unparsable.
    """
    file_path = Path(source)
    if not file_path.is_file():
        raise DiscoveryError(f"Discovery document not found: {source}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DiscoveryError(f"Failed to read {source}: {exc}") from exc
    if not content.strip():
        raise DiscoveryError(f"Discovery document is empty: {source}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return _parse_content(content, hint=hint, source=str(source))


def _parse_content(content: str, hint: str = "", source: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    JSON is tried first unless *hint* is ``"yaml"``; YAML is the fallback
    unless *hint* is ``"json"``.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise DiscoveryError(f"Invalid JSON in {source}: {exc}") from exc
            json_error = exc
        else:
            return _ensure_object(result, source)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = f"Failed to parse {source} as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise DiscoveryError(msg) from exc
    return _ensure_object(result, source)


def _ensure_object(result: Any, source: str) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DiscoveryError(f"{source} must contain a JSON/YAML object (got {kind})")
    return result


# ---------------------------------------------------------------------------
# Raw document cache
# ---------------------------------------------------------------------------


class DocumentCache:
    """Disk-backed cache of raw discovery documents.

    Entries are keyed by api id (``"container:v1"``) and expire after
    :attr:`~discoli.models.CacheConfig.ttl_seconds`. The directory listing
    is cached under a reserved key. When caching is disabled every lookup
    misses and every store is a no-op.

    Args:
        cache_dir: Root directory; documents live in ``documents/`` inside it.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).

    Example::

        cache = DocumentCache(get_cache_dir(), CacheConfig())
        doc = cache.get("container:v1")
        if doc is None:
            doc = fetch_document(url)
            cache.set("container:v1", doc)
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._cache_dir = Path(cache_dir) / "documents"
        self._cache: Optional[diskcache.Cache] = None
        if config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir))

    def __enter__(self) -> DocumentCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def get(self, api_id: str) -> Optional[dict[str, Any]]:
        """Return the cached document for *api_id*, or ``None`` on a miss."""
        if self._cache is None:
            return None
        return self._cache.get(api_id)

    def set(self, api_id: str, document: dict[str, Any]) -> None:
        """Store *document* under *api_id* with the configured TTL."""
        if self._cache is None:
            return
        self._cache.set(api_id, document, expire=self._config.ttl_seconds)

    def get_directory(self) -> Optional[dict[str, Any]]:
        return self.get(_DIRECTORY_KEY)

    def set_directory(self, directory: dict[str, Any]) -> None:
        self.set(_DIRECTORY_KEY, directory)

    def invalidate(self, api_id: str) -> None:
        """Drop the cached document for *api_id*, if any."""
        if self._cache is not None:
            self._cache.delete(api_id)

    def clear(self) -> None:
        """Remove all cached documents."""
        if self._cache is not None:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``enabled`` and, when enabled, ``size``, ``directory`` and ``ttl_seconds``."""
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._cache_dir),
            "ttl_seconds": self._config.ttl_seconds,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        if self._cache is not None:
            self._cache.close()


def get_document(
    name: str,
    version: str,
    cache: Optional[DocumentCache] = None,
    client: Optional[httpx.Client] = None,
    refresh: bool = False,
) -> dict[str, Any]:
    """Return the raw document for ``name:version``, from *cache* when possible.

    The directory and the document are fetched on a miss (or when *refresh*
    is set) and written back to *cache*.

    Raises:
        ServiceNotFound: ``name:version`` is not in the directory.
        DiscoveryError: A fetch failed.
    """
    api_id = f"{name}:{version}"
    if cache is not None and not refresh:
        cached = cache.get(api_id)
        if cached is not None:
            logger.debug("Discovery document cache hit: %s", api_id)
            return cached

    directory = None if cache is None or refresh else cache.get_directory()
    if directory is None:
        directory = fetch_directory(client)
        if cache is not None:
            cache.set_directory(directory)

    document = fetch_document(discovery_url_for(name, version, directory), client)
    if cache is not None:
        cache.set(api_id, document)
    return document
