"""Resource resolution -- map a short dotted path to one resource.

Typical usage::

    from discoli.resolver import find_resource, find_method

    clusters = find_resource(api, "clusters")
    get = find_method(clusters, "get")

Sub-modules:

* :mod:`~discoli.resolver.resolver` -- suffix matching, candidate collection
  and method lookup.
* :mod:`~discoli.resolver.strategies` -- per-service rules that pick one
  resource when a path is ambiguous.
"""

from discoli.resolver.resolver import find_method, find_resource
from discoli.resolver.strategies import register_strategy

__all__ = ["find_resource", "find_method", "register_strategy"]
