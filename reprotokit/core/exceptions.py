"""
Centralized exception hierarchy for reprotokit.

This module defines all custom exceptions used across the codebase
so callers can catch a single base class at the top level.
"""

from typing import List, Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class ReprotoKitError(Exception):
    """Base exception for all reprotokit errors."""

    pass


class ConfigError(ReprotoKitError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Version Exceptions
# ============================================================================


class VersionParseError(ReprotoKitError):
    """Raised when a version or constraint string is malformed."""

    def __init__(self, text: str, token: str):
        self.text = text
        self.token = token
        super().__init__(f"Invalid version '{text}': bad component '{token}'")


# ============================================================================
# Release Discovery Exceptions
# ============================================================================


class ReleaseDiscoveryError(ReprotoKitError):
    """Base exception for remote release discovery errors."""

    pass


class ReleaseNotFoundError(ReleaseDiscoveryError):
    """Raised when no remote release satisfies the requested constraint."""

    def __init__(self, constraint: str, source: str = ""):
        self.constraint = constraint
        self.source = source
        msg = f"No remote release found matching '{constraint}'"
        if source:
            msg += f" at {source}"
        super().__init__(msg)


# ============================================================================
# Download and Archive Exceptions
# ============================================================================


class DownloadError(ReprotoKitError):
    """Raised when a download fails."""

    pass


class ArchiveExtractionError(ReprotoKitError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


class CorruptArchiveError(ArchiveExtractionError):
    """Archive stream ended before an entry's declared size was read."""

    pass


# ============================================================================
# Provisioning Exceptions
# ============================================================================


class ProvisioningError(ReprotoKitError):
    """Raised when the compiler executable cannot be provisioned."""

    pass


class ArtifactResolutionError(ProvisioningError):
    """Raised when an artifact coordinate cannot be resolved to a file."""

    pass


# ============================================================================
# Process Exceptions
# ============================================================================


class ProcessError(ReprotoKitError):
    """Base exception for compiler process errors."""

    pass


class ProcessFailedError(ProcessError):
    """Raised when the compiler exits with a non-zero status."""

    def __init__(
        self,
        executable: str,
        exit_code: int,
        stdout_lines: Optional[List[str]] = None,
        stderr_lines: Optional[List[str]] = None,
    ):
        self.executable = executable
        self.exit_code = exit_code
        self.stdout_lines = list(stdout_lines or [])
        self.stderr_lines = list(stderr_lines or [])
        super().__init__(f"{executable}: exited with non-zero status ({exit_code})")


class ProcessTimeoutError(ProcessError):
    """Raised when the compiler does not finish within the configured timeout."""

    def __init__(
        self,
        executable: str,
        timeout: float,
        stdout_lines: Optional[List[str]] = None,
        stderr_lines: Optional[List[str]] = None,
    ):
        self.executable = executable
        self.timeout = timeout
        self.stdout_lines = list(stdout_lines or [])
        self.stderr_lines = list(stderr_lines or [])
        super().__init__(f"{executable}: timed out after {timeout}s")
