"""Configuration management with XDG paths and atomic writes.

This module handles all persistent state for discoli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.discoli/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`, and :func:`get_apis_dir`.
* **Global config** -- A single :class:`~discoli.models.GlobalConfig`
  JSON file storing defaults (output format, cache and request settings).
* **Environment overrides** -- ``DISCOLI_FORMAT`` replaces the stored
  output format; ``DISCOLI_ACCESS_TOKEN`` is read by ``discoli exec``.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so that a reader never sees a half-written tree,
even when two ``discoli`` processes rebuild the same service at once.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from discoli.exceptions import ConfigError
from discoli.models import GlobalConfig

_APP_NAME = "discoli"
_CONFIG_FILENAME = "config.json"

ENV_FORMAT = "DISCOLI_FORMAT"
ENV_ACCESS_TOKEN = "DISCOLI_ACCESS_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG base directories (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/discoli/`` (default ``~/.config/discoli/``).
    On macOS/Windows: ``~/.discoli/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Raw discovery documents are cached here. The directory can be deleted at
    any time; documents are fetched again on demand.

    On Linux/BSD: ``$XDG_CACHE_HOME/discoli/`` (default ``~/.cache/discoli/``).
    On macOS/Windows: ``~/.discoli/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (stored trees, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/discoli/`` (default ``~/.local/share/discoli/``).
    On macOS/Windows: ``~/.discoli/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_apis_dir() -> Path:
    """Return the directory of stored trees (``<data_dir>/apis/``), creating it if necessary."""
    path = get_data_dir() / "apis"
    path.mkdir(parents=True, exist_ok=True)
    return path


def api_file_path(name: str, version: str) -> Path:
    """Path of the stored tree for ``name:version`` (``<apis_dir>/<name>_<version>.json``)."""
    return get_apis_dir() / f"{name}_{version}.json"


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration and apply environment overrides.

    Returns:
        The deserialised :class:`~discoli.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    config = GlobalConfig()
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            config = GlobalConfig.model_validate(data)
        except (json.JSONDecodeError, ValueError) as exc:
            raise ConfigError(f"Invalid global config at {path}: {exc}") from exc

    env_format = os.environ.get(ENV_FORMAT)
    if env_format:
        config.default_format = env_format
    return config


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")
