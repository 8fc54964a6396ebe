"""Tokenize discovery URL templates into ancestor resource names.

A discovery method's ``flatPath`` spells out where its resource lives::

    v1/projects/{projectsId}/locations/{locationsId}/clusters

Literal segments between the placeholders name the ancestors. After the
placeholders, the final segment (the resource or method itself) and the
version token are removed, what remains is the ancestor chain
(``["projects", "locations"]``).

Some templates carry no usable ancestry. A template with a ``:`` action
suffix (``.../clusters/{clustersId}:setLabels``) ends in a verb rather than
a resource, and compute's ``/aggregated/`` listings cut across every zone and
region. :func:`is_valid_template` filters those out before inference.
"""

from __future__ import annotations

import re

_VERSION_TOKEN = re.compile(r"^v\d+(?:[a-z]+\d*)*$")


def _is_placeholder(segment: str) -> bool:
    """Return ``True`` if *segment* is a path parameter (e.g., ``{projectsId}``)."""
    return segment.startswith("{") and segment.endswith("}")


def _split_segments(path_template: str) -> list[str]:
    """Split a template into non-empty segments.

    ``"v1/projects/{projectsId}"`` -> ``["v1", "projects", "{projectsId}"]``
    """
    return [s for s in path_template.split("/") if s]


def segments(path_template: str, version: str) -> list[str]:
    """Return the ancestor resource names encoded in *path_template*.

    Placeholders are dropped, then the last remaining segment, then every
    segment equal to *version* or shaped like a version token
    (``v1``, ``v1beta4``, ``v1b3``).

    Args:
        path_template: A method's URL template.
        version: The API version token (e.g. ``"v1"``).

    Returns:
        The literal ancestor segments in order.

    Example::

        >>> segments("v1/projects/{projectsId}/locations/{locationsId}/clusters", "v1")
        ['projects', 'locations']
        >>> segments("bigquery/v2/projects/{projectId}/datasets", "v2")
        ['bigquery', 'projects']
        >>> segments("v1/projects/{projectsId}/datasets", "v2")
        ['projects']
        >>> segments("{+name}", "v1")
        []
    """
    literal = [s for s in _split_segments(path_template) if not _is_placeholder(s)]
    if literal:
        literal.pop()
    return [s for s in literal if s != version and not _VERSION_TOKEN.match(s)]


def is_valid_template(service: str, path_template: str) -> bool:
    """Return whether *path_template* can be used to infer a resource's ancestors.

    Example::

        >>> is_valid_template("container", "v1/projects/{projectsId}/clusters")
        True
        >>> is_valid_template("container", "v1/projects/{p}/clusters/{c}:setLabels")
        False
        >>> is_valid_template("compute", "projects/{project}/aggregated/disks")
        False
    """
    if ":" in path_template:
        return False
    if service == "compute" and "/aggregated/" in path_template:
        return False
    return True


def join_path(*parts: str) -> str:
    """Join dotted path labels, skipping empty ones.

    >>> join_path("bigquery", "projects", "datasets")
    'bigquery.projects.datasets'
    """
    return ".".join(p for p in parts if p)


def parent_of(dotted: str) -> str:
    """Drop the last label of a dotted id.

    >>> parent_of("container.projects.locations.clusters.get")
    'container.projects.locations.clusters'
    """
    head, _, _ = dotted.rpartition(".")
    return head
