"""
Google Cloud Storage release backend.

The bucket publishes a plain-text ``releases`` object with one version per
line. It is fetched conditionally with ``If-None-Match`` so an unchanged
listing costs a single 304 round-trip.
"""

import logging
from typing import Optional

from reprotokit.core.exceptions import ReleaseDiscoveryError, ReleaseNotFoundError
from reprotokit.core.version import Constraint, Version
from reprotokit.releases.base import (
    DEFAULT_TIMEOUT,
    GCS_BACKEND,
    Release,
    ReleaseClient,
    ResolutionResult,
    select_latest,
)

logger = logging.getLogger(__name__)

GCS_RELEASES_URL = "https://storage.googleapis.com/reproto-releases"

NOT_MODIFIED = 304


class GcsReleaseClient(ReleaseClient):
    """Release backend backed by a flat GCS bucket listing."""

    name = GCS_BACKEND

    def __init__(self, base_url: str = GCS_RELEASES_URL, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(timeout=timeout)
        self.base_url = base_url.rstrip("/")

    @property
    def releases_url(self) -> str:
        return f"{self.base_url}/releases"

    def resolve_latest(
        self, constraint: Constraint, known: Optional[Release] = None
    ) -> ResolutionResult:
        """
        Resolve the latest listed release matching constraint.

        Returns:
            UNCHANGED with ``known`` on 304, otherwise RESOLVED with the
            response ETag as the new token

        Raises:
            ReleaseNotFoundError: If no listed version matches
            ReleaseDiscoveryError: If the request fails, a 304 arrives with no
                known release, or the listing has no ETag
        """
        headers = {}
        if known is not None and known.token:
            headers["If-None-Match"] = known.token

        response = self._get(self.releases_url, headers=headers)

        if response.status_code == NOT_MODIFIED:
            if known is None:
                raise ReleaseDiscoveryError(
                    f"{self.releases_url}: not modified, but no release is cached"
                )
            logger.debug(f"Release listing unchanged, keeping {known.version}")
            return ResolutionResult.unchanged(known)

        etag = response.headers.get("ETag")
        if not etag:
            raise ReleaseDiscoveryError(f"{self.releases_url}: response has no ETag")

        latest = select_latest(response.text.splitlines(), constraint)

        if latest is None:
            raise ReleaseNotFoundError(str(constraint), self.releases_url)

        logger.debug(f"Latest listed release matching {constraint}: {latest}")
        return ResolutionResult.resolved(Release(latest, etag))

    def download_url(self, version: Version, file_name: str) -> str:
        return f"{self.base_url}/{file_name}"


__all__ = ["GcsReleaseClient", "GCS_RELEASES_URL"]
