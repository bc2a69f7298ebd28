"""
Remote release discovery for reprotokit.

Two backends answer "what is the latest release matching a constraint":

- gcs: flat plain-text listing in a storage bucket, fetched conditionally
- github: tag names of a repository's GitHub releases

The resolved release is remembered per backend by VersionCache.
"""

from reprotokit.releases.base import (
    ReleaseClient,
    Release,
    ResolutionResult,
    ResolutionStatus,
    select_latest,
    create_release_client,
    RELEASE_BACKENDS,
    GCS_BACKEND,
    GITHUB_BACKEND,
    DEFAULT_REPOSITORY,
)
from reprotokit.releases.gcs import GcsReleaseClient
from reprotokit.releases.github import GithubReleaseClient
from reprotokit.releases.cache import VersionCache, CacheEntry, DEFAULT_TTL_MINUTES

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
    "GcsReleaseClient",
    "GithubReleaseClient",
    "VersionCache",
    "CacheEntry",
    "DEFAULT_TTL_MINUTES",
]
