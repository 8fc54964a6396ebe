"""Canonical Pydantic models shared across all discoli modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`RequestConfig`, and :class:`GlobalConfig`.

**Resource tree models** -- produced by the discovery normalizer, reshaped by
the hierarchy rebuilder, and consumed by the resolver and the commands:
    :class:`HTTPMethod`, :class:`QueryParam`, :class:`Method`,
    :class:`Resource`, and :class:`Api`.

Trees are rebuilt wholesale. Code that transforms a tree works on a
``model_copy(deep=True)`` and returns the new instance, so an :class:`Api`
handed to a caller is never mutated behind its back.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Config ---


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every ``discoli exec`` call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(
        default=3, description="Retries for GET requests on 5xx and network errors"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Raw discovery document cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable document caching")
    ttl_seconds: int = Field(
        default=86400, description="Cache TTL for discovery documents in seconds"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/discoli/config.json``.

    Loaded and saved by :func:`~discoli.config.load_global_config` and
    :func:`~discoli.config.save_global_config`. Command-line flags and the
    ``DISCOLI_FORMAT`` environment variable take precedence over the values
    stored here.
    """

    default_format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Resource Tree Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs :mod:`discoli.commands.exec` can send.

    A discovery method may declare any verb; :attr:`Method.http_method`
    keeps it as written and :attr:`Method.executable` tells whether it is
    one of these.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


_EXECUTABLE_METHODS = frozenset(verb.value for verb in HTTPMethod)


class QueryParam(BaseModel):
    """A query-string parameter of a :class:`Method`.

    Path parameters never appear here; they are the ``{placeholder}`` tokens
    of :attr:`Method.flat_path`.
    """

    name: str
    description: Optional[str] = None
    required: bool = False


class Method(BaseModel):
    """A single callable API method.

    ``id`` is the canonical dotted identifier
    (``<service>.<ancestors>.<resource>.<method>``). When the hierarchy
    rebuilder rewrites it, the id declared by the discovery document is kept
    in ``original_id``; the documentation search link is built from that
    value because the published reference pages use it.

    Example::

        Method(
            id="bigquery.projects.datasets.list",
            original_id="bigquery.datasets.list",
            name="list",
            http_method=HTTPMethod.GET,
            flat_path="projects/{projectsId}/datasets",
        )
    """

    id: str
    original_id: Optional[str] = None
    name: str
    http_method: str = Field(description="Declared verb, upper-cased")
    flat_path: str = Field(description="URL path template, flatPath preferred")
    description: Optional[str] = None
    query_params: list[QueryParam] = Field(default_factory=list)
    request_schema: Optional[dict[str, Any]] = Field(
        default=None, description="Request body schema for non-GET/DELETE methods"
    )

    @field_validator("http_method", mode="before")
    @classmethod
    def _normalize_verb(cls, value: Any) -> str:
        if isinstance(value, HTTPMethod):
            return value.value
        return str(value).upper()

    @property
    def executable(self) -> bool:
        """True when the verb is one ``discoli exec`` can send."""
        return self.http_method in _EXECUTABLE_METHODS

    @property
    def doc_id(self) -> str:
        """The id published in the API reference (``original_id`` when rewritten)."""
        return self.original_id or self.id


class Resource(BaseModel):
    """A named resource node with its methods and nested sub-resources.

    ``path`` is the canonical dotted path (e.g.
    ``container.projects.locations.clusters``). It is unique along one
    root-to-leaf branch but not across the whole tree: several branches may
    end in the same trailing names, which is why
    :func:`~discoli.resolver.find_resource` needs disambiguation.

    Every child's ``parent_path`` equals its parent's ``path``.
    """

    name: str
    path: Optional[str] = None
    parent_path: Optional[str] = None
    methods: list[Method] = Field(default_factory=list)
    resources: Optional[list[Resource]] = None

    def method_names(self) -> list[str]:
        return [m.name for m in self.methods]


class Api(BaseModel):
    """Root of a normalized resource tree for one ``<service>:<version>``.

    The Api owns every :class:`Resource` and :class:`Method` below it;
    nodes are never shared between two Api instances.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    version: str
    title: Optional[str] = None
    description: Optional[str] = None
    revision: Optional[str] = None
    base_url: str = ""
    documentation_link: Optional[str] = None
    resources: list[Resource] = Field(default_factory=list)
    schemas: dict[str, Any] = Field(default_factory=dict)
