"""
Release discovery abstraction for reprotokit.

This module provides the abstract base class shared by all remote release
backends, the result types they return, and the factory used to select a
backend by name at configuration time.

Classes:
    ReleaseClient: Abstract base class for release backends
    Release: A resolved version plus its backend-specific cache token
    ResolutionResult: Outcome of a resolve_latest() call
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

import requests
from requests.exceptions import RequestException

from reprotokit.core.exceptions import ReleaseDiscoveryError, VersionParseError
from reprotokit.core.filesystem import TAR_GZ
from reprotokit.core.version import Constraint, Version

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

GCS_BACKEND = "gcs"
GITHUB_BACKEND = "github"
RELEASE_BACKENDS = (GCS_BACKEND, GITHUB_BACKEND)

DEFAULT_REPOSITORY = "reproto/reproto"


class ResolutionStatus(Enum):
    """Outcome kinds of a release resolution."""

    RESOLVED = "resolved"  # New release found
    UNCHANGED = "unchanged"  # Server confirmed the known release is current
    NOT_FOUND = "not_found"  # No release satisfies the constraint


@dataclass(frozen=True)
class Release:
    """
    A resolved release.

    Attributes:
        version: Resolved version
        token: Opaque backend token (an HTTP ETag for the flat listing),
            None when the backend has no conditional requests
    """

    version: Version
    token: Optional[str] = None


@dataclass(frozen=True)
class ResolutionResult:
    """Result of ReleaseClient.resolve_latest()."""

    status: ResolutionStatus
    release: Optional[Release] = None

    @classmethod
    def resolved(cls, release: Release) -> "ResolutionResult":
        return cls(ResolutionStatus.RESOLVED, release)

    @classmethod
    def unchanged(cls, release: Release) -> "ResolutionResult":
        return cls(ResolutionStatus.UNCHANGED, release)

    @classmethod
    def not_found(cls) -> "ResolutionResult":
        return cls(ResolutionStatus.NOT_FOUND)

    @property
    def found(self) -> bool:
        return self.status is not ResolutionStatus.NOT_FOUND


def select_latest(candidates: Iterable[str], constraint: Constraint) -> Optional[Version]:
    """
    Pick the highest version matching a constraint.

    Blank candidates are ignored; malformed ones are skipped with a debug log.

    Args:
        candidates: Version strings as published by a backend
        constraint: Prefix the chosen version must start with

    Returns:
        Highest matching Version, or None if nothing matches

    Example:
        >>> select_latest(["0.3.1", "0.3.10", "0.4.0"], Constraint.parse("0.3"))
        Version('0.3.10')
    """
    latest = None

    for candidate in candidates:
        if not candidate.strip():
            continue

        try:
            version = Version.parse(candidate)
        except VersionParseError as e:
            logger.debug(f"Skipping unparsable release: {e}")
            continue

        if not constraint.matches(version):
            continue

        if latest is None or version > latest:
            latest = version

    return latest


class ReleaseClient(ABC):
    """
    Abstract base class for remote release backends.

    Subclasses answer "which is the latest release matching this
    constraint" and know where release files are downloaded from.

    Attributes:
        name: Backend name, also used as its cache subdirectory
        default_archive_format: Archive extension published by the backend
    """

    name: str = ""
    default_archive_format: str = TAR_GZ

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize release client.

        Args:
            timeout: HTTP timeout in seconds for discovery requests
        """
        self.timeout = timeout

    @abstractmethod
    def resolve_latest(
        self, constraint: Constraint, known: Optional[Release] = None
    ) -> ResolutionResult:
        """
        Resolve the latest release satisfying a constraint.

        Args:
            constraint: Version prefix to satisfy
            known: Previously cached release, used for conditional requests

        Returns:
            ResolutionResult with status RESOLVED, UNCHANGED or NOT_FOUND

        Raises:
            ReleaseDiscoveryError: If the backend cannot be queried
        """
        pass

    @abstractmethod
    def download_url(self, version: Version, file_name: str) -> str:
        """
        Get the download URL of a release file.

        Args:
            version: Release version
            file_name: Archive file name
        """
        pass

    def _get(self, url: str, headers: Optional[dict] = None) -> requests.Response:
        """
        Perform a discovery GET request.

        Raises:
            ReleaseDiscoveryError: On network errors and non-2xx/304 responses
        """
        logger.debug(f"GET {url}")

        try:
            response = requests.get(url, headers=headers or {}, timeout=self.timeout)
            response.raise_for_status()
        except RequestException as e:
            raise ReleaseDiscoveryError(f"Failed to query releases at {url}: {e}") from e

        return response

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def create_release_client(
    name: str,
    repository: str = DEFAULT_REPOSITORY,
    timeout: float = DEFAULT_TIMEOUT,
) -> ReleaseClient:
    """
    Create a release client by backend name.

    Args:
        name: 'gcs' or 'github'
        repository: GitHub repository ('owner/name') for the github backend
        timeout: HTTP timeout in seconds

    Raises:
        ValueError: If the backend name is unknown
    """
    from reprotokit.releases.gcs import GcsReleaseClient
    from reprotokit.releases.github import GithubReleaseClient

    if name == GCS_BACKEND:
        return GcsReleaseClient(timeout=timeout)
    if name == GITHUB_BACKEND:
        return GithubReleaseClient(repository, timeout=timeout)

    raise ValueError(
        f"Unknown release backend: {name!r}. "
        f"Supported: {', '.join(RELEASE_BACKENDS)}"
    )


__all__ = [
    "ReleaseClient",
    "Release",
    "ResolutionResult",
    "ResolutionStatus",
    "select_latest",
    "create_release_client",
    "RELEASE_BACKENDS",
    "GCS_BACKEND",
    "GITHUB_BACKEND",
    "DEFAULT_REPOSITORY",
]
