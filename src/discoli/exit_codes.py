"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~discoli.exceptions.DiscoliError` subclass.
Shell wrappers can inspect the exit code to tell a typo in a resource path
apart from a broken discovery document without parsing stderr.

Example::

    $ discoli list container zonez.clusters
    $ echo $?
    4   # EXIT_NOT_FOUND -- no resource path ends with 'zonez.clusters'
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The remote API rejected the access token."""

EXIT_NOT_FOUND = 4
"""A service, resource, or method could not be found."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DISCOVERY_ERROR = 7
"""The discovery document could not be fetched or parsed."""

EXIT_STRUCTURAL_INCONSISTENCY = 8
"""The resource hierarchy could not be reassembled (dangling parent path)."""

EXIT_SELECTION_FAILED = 9
"""A disambiguation strategy did not return one of its candidates."""
