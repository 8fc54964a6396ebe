"""Credentials and defaults borrowed from the gcloud CLI.

discoli never stores credentials. ``discoli exec`` sends a bearer token
taken from the ``DISCOLI_ACCESS_TOKEN`` environment variable or, when that
is unset, from ``gcloud auth print-access-token``. Path placeholders such as
``{projectsId}`` can be filled from ``gcloud config get`` when the user does
not pass them with ``-p``.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional

from discoli.config import ENV_ACCESS_TOKEN
from discoli.exceptions import AuthError

logger = logging.getLogger(__name__)

_GCLOUD = "gcloud"
_GCLOUD_TIMEOUT = 30

#: Placeholder names filled from ``gcloud config get <key>``.
AUTOFILL_KEYS: dict[str, str] = {
    "projectsId": "core/project",
    "project": "core/project",
    "projectId": "core/project",
    "regionsId": "compute/region",
    "region": "compute/region",
    "locationsId": "compute/region",
    "location": "compute/region",
    "zonesId": "compute/zone",
    "zone": "compute/zone",
}


def _run_gcloud(*args: str) -> Optional[str]:
    """Run ``gcloud <args>`` and return its trimmed stdout, or ``None`` on failure."""
    try:
        completed = subprocess.run(
            [_GCLOUD, *args],
            capture_output=True,
            text=True,
            timeout=_GCLOUD_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("gcloud %s failed: %s", " ".join(args), exc)
        return None
    if completed.returncode != 0:
        logger.debug(
            "gcloud %s exited with %d: %s",
            " ".join(args),
            completed.returncode,
            completed.stderr.strip(),
        )
        return None
    value = completed.stdout.strip()
    return value or None


def gcloud_config_value(key: str) -> Optional[str]:
    """Return ``gcloud config get <key>``, or ``None`` when it is unset.

    Example::

        gcloud_config_value("core/project")  # -> "my-project"
    """
    value = _run_gcloud("config", "get", key)
    if value is None:
        logger.debug(
            "No '%s' found in gcloud config. Consider: 'gcloud config set %s %s'",
            key,
            key,
            key.rsplit("/", 1)[-1].upper(),
        )
    else:
        logger.debug("Retrieved 'gcloud config get %s' => %r", key, value)
    return value


def resolve_access_token() -> str:
    """Return the bearer token for API calls.

    Raises:
        AuthError: Neither ``DISCOLI_ACCESS_TOKEN`` nor gcloud supplied one.
    """
    token = os.environ.get(ENV_ACCESS_TOKEN, "").strip()
    if token:
        logger.debug("Using access token from %s", ENV_ACCESS_TOKEN)
        return token
    token = _run_gcloud("auth", "print-access-token")
    if not token:
        raise AuthError(
            f"No access token available. Set {ENV_ACCESS_TOKEN} or run 'gcloud auth login'."
        )
    return token
