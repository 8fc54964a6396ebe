"""Hierarchy inference for flat discovery documents.

Typical usage::

    from discoli.hierarchy import needs_rebuild, rebuild_hierarchy

    if needs_rebuild(api.id):
        api = rebuild_hierarchy(api)

Sub-modules:

* :mod:`~discoli.hierarchy.segments` -- tokenize URL templates into
  ancestor names.
* :mod:`~discoli.hierarchy.overrides` -- per-service corrections for
  services whose URL segments differ from resource names.
* :mod:`~discoli.hierarchy.rebuilder` -- path inference and tree
  reassembly.
"""

from discoli.hierarchy.overrides import apply_service_override, register_override
from discoli.hierarchy.rebuilder import FLAT_SERVICES, needs_rebuild, rebuild_hierarchy

__all__ = [
    "FLAT_SERVICES",
    "apply_service_override",
    "needs_rebuild",
    "rebuild_hierarchy",
    "register_override",
]
