"""discoli -- browse and call Google Cloud REST APIs from their discovery documents.

discoli fetches a service's discovery document, normalizes it into a tree of
resources and methods, and rebuilds the nesting that flat services (such as
BigQuery or Cloud SQL Admin) leave out. The tree is stored once and then
browsed, described, and executed from the command line.

Typical workflow::

    discoli list                                  # the service catalog
    discoli list gke                              # resource tree of container:v1
    discoli desc gke locations.clusters create    # what exec needs
    discoli exec gke locations.clusters list      # call the API

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    hierarchy: Rebuilds the resource hierarchy of flat services.
    resolver: Maps user-typed resource paths to tree nodes.
    discovery: Fetches, caches, and normalizes discovery documents.
    store: Persists finished trees.
    config: XDG-aware configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
