"""Exception hierarchy for discoli.

All exceptions inherit from :class:`DiscoliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`discoli.exit_codes`.
The top-level error handler in :func:`discoli.app.main` catches
``DiscoliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    DiscoliError (exit 1)
    +-- InvalidUsageError         (exit 2)
    +-- AuthError                 (exit 3)
    +-- NotFoundError             (exit 4)
    |   +-- ServiceNotFound
    |   +-- ResourceNotFound
    |   +-- MethodNotFound
    +-- ServerError               (exit 5)
    +-- ConnectionError_          (exit 6)
    +-- DiscoveryError            (exit 7)
    +-- StructuralInconsistency   (exit 8)
    +-- SelectionFailed           (exit 9)
    +-- ConfigError               (exit 1)

The four core errors (``ResourceNotFound``, ``MethodNotFound``,
``StructuralInconsistency`` and ``SelectionFailed``) keep the values they
were raised with as attributes so callers can react without parsing the
message.
"""

from __future__ import annotations

from discoli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DISCOVERY_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SELECTION_FAILED,
    EXIT_SERVER_ERROR,
    EXIT_STRUCTURAL_INCONSISTENCY,
)


class DiscoliError(Exception):
    """Base exception for all discoli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`discoli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(DiscoliError):
    """Raised for invalid CLI arguments (bad ``key=value`` pairs, unsupported verbs)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(DiscoliError):
    """Raised when the API answers 401/403 or no access token can be obtained."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(DiscoliError):
    """Raised when a lookup fails, locally or as an HTTP 404 from the API."""

    exit_code = EXIT_NOT_FOUND


class ServiceNotFound(NotFoundError):
    """Raised when a service name, alias, or version is not in the catalog."""

    def __init__(self, service_ref: str, detail: str | None = None):
        self.service_ref = service_ref
        message = f"Service '{service_ref}' not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ResourceNotFound(NotFoundError):
    """Raised when no resource's canonical path ends with the requested suffix."""

    def __init__(self, path_suffix: str, api_id: str | None = None):
        self.path_suffix = path_suffix
        self.api_id = api_id
        message = f"Resource '{path_suffix}' not found"
        if api_id:
            message = f"{message} for API '{api_id}'"
        super().__init__(message + ".")


class MethodNotFound(NotFoundError):
    """Raised when a resource has no method with the requested name."""

    def __init__(self, resource_name: str, method_name: str):
        self.resource_name = resource_name
        self.method_name = method_name
        super().__init__(
            f"Method '{method_name}' not found in the resource '{resource_name}'"
        )


class ServerError(DiscoliError):
    """Raised when the API returns an HTTP 5xx (or an unmapped 4xx) response."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(DiscoliError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DiscoveryError(DiscoliError):
    """Raised when a discovery document cannot be fetched, parsed, or normalized."""

    exit_code = EXIT_DISCOVERY_ERROR


class StructuralInconsistency(DiscoliError):
    """Raised when hierarchy reassembly cannot place a resource under any parent.

    This happens when a resource's inferred parent path never appears in the
    rebuilt tree, i.e. the discovery document contains a dangling or
    circular parent reference.
    """

    exit_code = EXIT_STRUCTURAL_INCONSISTENCY

    def __init__(self, resource_name: str, parent_path: str | None = None):
        self.resource_name = resource_name
        self.parent_path = parent_path
        message = f"Could not place resource '{resource_name}' in the hierarchy"
        if parent_path:
            message = f"{message}: no node with path '{parent_path}'"
        super().__init__(message)


class SelectionFailed(DiscoliError):
    """Raised when a disambiguation strategy returns no usable candidate.

    Correct strategies never trigger this; it signals an internal bug.
    """

    exit_code = EXIT_SELECTION_FAILED

    def __init__(self, path_suffix: str):
        self.path_suffix = path_suffix
        super().__init__(f"Failed to select resource '{path_suffix}'")


class ConfigError(DiscoliError):
    """Raised for configuration problems (invalid JSON, unreadable files)."""

    exit_code = EXIT_GENERIC_FAILURE
