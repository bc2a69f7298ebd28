"""
Directory layout for reprotokit.

Global Cache (~/.cache/reprotokit/ or %LOCALAPPDATA%\\reprotokit\\cache\\):
    - <backend>/version        : Last resolved release for that backend
    - <backend>/<archive>      : Downloaded release archives
    - lock/                    : Concurrent access control files

Project-Local (<project-root>/.reprotokit/):
    - plugins/                 : Extracted, versioned compiler executables
"""

import os
from pathlib import Path, PurePath
from typing import Mapping, Optional

from reprotokit.core.exceptions import ReprotoKitError

CACHE_DIR_NAME = "reprotokit"
PROJECT_DIR_NAME = ".reprotokit"
VERSION_FILE_NAME = "version"


class DirectoryError(ReprotoKitError):
    """Base exception for directory-related errors."""

    pass


def get_global_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Get the platform-specific global cache directory path.

    Args:
        environ: Environment mapping to consult (default: os.environ)

    Returns:
        Path: The global cache directory path.
            - Windows: %LOCALAPPDATA%\\reprotokit\\cache
            - Linux/macOS: $XDG_CACHE_HOME/reprotokit or ~/.cache/reprotokit

    Raises:
        DirectoryError: If no home directory can be determined

    Example:
        >>> cache_dir = get_global_cache_dir()
        >>> print(cache_dir)
        /home/user/.cache/reprotokit  # on Linux
    """
    if environ is None:
        environ = os.environ

    if os.name == "nt":  # Windows
        local_app_data = environ.get("LOCALAPPDATA") or environ.get("USERPROFILE")
        if not local_app_data:
            raise DirectoryError(
                "LOCALAPPDATA environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(local_app_data) / CACHE_DIR_NAME / "cache"

    xdg_cache = environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / CACHE_DIR_NAME

    try:
        home = Path.home()
    except RuntimeError as e:
        raise DirectoryError(f"Cannot determine home directory: {e}") from e

    return home / ".cache" / CACHE_DIR_NAME


def get_backend_cache_dir(cache_root: Path, backend_name: str) -> Path:
    """
    Get the cache subdirectory for a release backend.

    Args:
        cache_root: Global cache directory
        backend_name: Release backend name (e.g. 'gcs', 'github')

    Returns:
        Path to the backend's cache directory (not created)
    """
    return Path(cache_root) / backend_name


def get_version_file(cache_root: Path, backend_name: str) -> Path:
    """Path of the cached resolved-version file for a backend."""
    return get_backend_cache_dir(cache_root, backend_name) / VERSION_FILE_NAME


def get_project_local_dir(project_root: Path) -> Path:
    """
    Get the project-local reprotokit directory path.

    Args:
        project_root: Root directory of the project.

    Returns:
        Path: <project-root>/.reprotokit
    """
    if not isinstance(project_root, (Path, PurePath)):
        project_root = Path(project_root)
    return project_root / PROJECT_DIR_NAME


def get_default_plugins_dir(project_root: Path) -> Path:
    """Default directory for extracted compiler executables."""
    return get_project_local_dir(project_root) / "plugins"


__all__ = [
    "DirectoryError",
    "CACHE_DIR_NAME",
    "PROJECT_DIR_NAME",
    "VERSION_FILE_NAME",
    "get_global_cache_dir",
    "get_backend_cache_dir",
    "get_version_file",
    "get_project_local_dir",
    "get_default_plugins_dir",
]
