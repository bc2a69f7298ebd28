"""
GitHub release backend.

Lists the tags of a repository's releases and picks the highest one
matching the constraint. Every call is a live query; there is no cache
token.
"""

import logging
from typing import Optional

from reprotokit.core.exceptions import ReleaseDiscoveryError
from reprotokit.core.version import Constraint, Version
from reprotokit.releases.base import (
    DEFAULT_REPOSITORY,
    DEFAULT_TIMEOUT,
    GITHUB_BACKEND,
    Release,
    ReleaseClient,
    ResolutionResult,
    select_latest,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_URL = "https://github.com"


class GithubReleaseClient(ReleaseClient):
    """
    Release backend backed by the GitHub releases API.

    Example:
        >>> client = GithubReleaseClient("reproto/reproto")
        >>> result = client.resolve_latest(Constraint.parse("0.3"))
        >>> client.download_url(result.release.version, "reproto-0.3.36-linux-x86_64.tar.gz")
        'https://github.com/reproto/reproto/releases/download/0.3.36/reproto-0.3.36-linux-x86_64.tar.gz'
    """

    name = GITHUB_BACKEND

    def __init__(
        self,
        repository: str = DEFAULT_REPOSITORY,
        api_url: str = GITHUB_API_URL,
        download_base: str = GITHUB_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(timeout=timeout)
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.download_base = download_base.rstrip("/")

    @property
    def releases_url(self) -> str:
        return f"{self.api_url}/repos/{self.repository}/releases"

    def resolve_latest(
        self, constraint: Constraint, known: Optional[Release] = None
    ) -> ResolutionResult:
        response = self._get(
            self.releases_url, headers={"Accept": "application/vnd.github+json"}
        )

        try:
            releases = response.json()
        except ValueError as e:
            raise ReleaseDiscoveryError(
                f"Invalid JSON from {self.releases_url}: {e}"
            ) from e

        if not isinstance(releases, list):
            raise ReleaseDiscoveryError(
                f"Expected a list of releases from {self.releases_url}, "
                f"got {type(releases).__name__}"
            )

        tags = []
        for entry in releases:
            tag = entry.get("tag_name") if isinstance(entry, dict) else None
            if not isinstance(tag, str):
                logger.debug(f"Skipping release entry without tag_name: {entry!r}")
                continue
            tags.append(tag)

        latest = select_latest(tags, constraint)

        if latest is None:
            logger.debug(f"No GitHub release of {self.repository} matches {constraint}")
            return ResolutionResult.not_found()

        logger.debug(f"Latest GitHub release matching {constraint}: {latest}")
        return ResolutionResult.resolved(Release(latest))

    def download_url(self, version: Version, file_name: str) -> str:
        return (
            f"{self.download_base}/{self.repository}/releases/download/"
            f"{version}/{file_name}"
        )


__all__ = ["GithubReleaseClient", "GITHUB_API_URL", "GITHUB_URL"]
