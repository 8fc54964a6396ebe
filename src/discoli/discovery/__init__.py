"""Discovery documents -- fetch, cache, and normalize them into resource trees.

Typical usage::

    from discoli.discovery import load_document, build_api

    api = build_api(load_document("bigquery_v2.json"))

Sub-modules:

* :mod:`~discoli.discovery.loader` -- I/O layer (discovery directory, HTTP
  fetch, local files) plus the raw document cache.
* :mod:`~discoli.discovery.normalizer` -- converts a raw document into an
  :class:`~discoli.models.Api`, rebuilding the hierarchy of flat services.
"""

from discoli.discovery.loader import DocumentCache, fetch_document, get_document, load_document
from discoli.discovery.normalizer import build_api, normalize_document

__all__ = [
    "DocumentCache",
    "build_api",
    "fetch_document",
    "get_document",
    "load_document",
    "normalize_document",
]
