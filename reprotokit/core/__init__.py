"""
Core functionality for reprotokit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_global_cache_dir,
    get_backend_cache_dir,
    get_version_file,
    get_project_local_dir,
    get_default_plugins_dir,
    DirectoryError,
)

from .locking import (
    LockManager,
    LockTimeoutError,
)

from .platform import (
    PlatformKey,
    detect_platform_key,
    platform_key_for,
    clear_platform_cache,
)

from .version import (
    Version,
    Constraint,
    parse_version,
    parse_constraint,
)

from .exceptions import (
    ReprotoKitError,
    ConfigError,
    VersionParseError,
    ReleaseDiscoveryError,
    ReleaseNotFoundError,
    DownloadError,
    ArchiveExtractionError,
    UnsupportedArchiveFormat,
    InsecureArchiveError,
    CorruptArchiveError,
    ProvisioningError,
    ArtifactResolutionError,
    ProcessError,
    ProcessFailedError,
    ProcessTimeoutError,
)

__all__ = [
    # Directory
    "get_global_cache_dir",
    "get_backend_cache_dir",
    "get_version_file",
    "get_project_local_dir",
    "get_default_plugins_dir",
    "DirectoryError",
    # Locking
    "LockManager",
    "LockTimeoutError",
    # Platform
    "PlatformKey",
    "detect_platform_key",
    "platform_key_for",
    "clear_platform_cache",
    # Version
    "Version",
    "Constraint",
    "parse_version",
    "parse_constraint",
    # Exceptions
    "ReprotoKitError",
    "ConfigError",
    "VersionParseError",
    "ReleaseDiscoveryError",
    "ReleaseNotFoundError",
    "DownloadError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "CorruptArchiveError",
    "ProvisioningError",
    "ArtifactResolutionError",
    "ProcessError",
    "ProcessFailedError",
    "ProcessTimeoutError",
]
