"""Shared test fixtures for discoli.

Provides reusable fixtures for loading discovery document fixtures, building
resource trees, creating isolated config environments, managing output and
logging state, and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from discoli.models import Api
from discoli.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict[str, Any]:
    """Load a raw discovery document from ``tests/fixtures``."""
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Drop handlers the CLI callback installs on the ``discoli`` logger."""
    yield
    logger = logging.getLogger("discoli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Raw discovery document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def container_doc() -> dict[str, Any]:
    """Raw container:v1 document (nested resources, zonal and regional clusters)."""
    return load_fixture("container_v1.json")


@pytest.fixture
def bigquery_doc() -> dict[str, Any]:
    """Raw bigquery:v2 document (flat resources)."""
    return load_fixture("bigquery_v2.json")


@pytest.fixture
def sqladmin_doc() -> dict[str, Any]:
    """Raw sqladmin:v1 document (flat resources plus a nested ``projects.instances``)."""
    return load_fixture("sqladmin_v1.json")


# ---------------------------------------------------------------------------
# Built tree fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def container_api(container_doc: dict[str, Any]) -> Api:
    from discoli.discovery import build_api

    return build_api(container_doc)


@pytest.fixture
def bigquery_api(bigquery_doc: dict[str, Any]) -> Api:
    from discoli.discovery import build_api

    return build_api(bigquery_doc)


@pytest.fixture
def sqladmin_api(sqladmin_doc: dict[str, Any]) -> Api:
    from discoli.discovery import build_api

    return build_api(sqladmin_doc)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all DISCOLI_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    config_dir = tmp_path / "config"
    cache_dir = tmp_path / "cache"
    data_dir = tmp_path / "data"

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))
    monkeypatch.setattr("discoli.config._is_xdg_platform", lambda: True)

    for var in ["DISCOLI_FORMAT", "DISCOLI_ACCESS_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def stored_apis(
    isolated_config: Path,
    container_api: Api,
    bigquery_api: Api,
    sqladmin_api: Api,
) -> Path:
    """Store the fixture trees where ``ensure_api`` looks for them.

    Commands then run without any discovery fetch.
    """
    from discoli.config import api_file_path
    from discoli.store import save_api

    for api in (container_api, bigquery_api, sqladmin_api):
        save_api(api, api_file_path(api.name, api.version))
    return isolated_config


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Set up JSON output for tests that check JSON-formatted output.

    Installs a JSON-format OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
