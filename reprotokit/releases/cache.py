"""
On-disk cache of the last resolved release.

One small JSON file per backend records the resolved version and its token;
the file's modification time is the staleness clock. A corrupt file is
deleted and treated as missing, and failed writes are only logged: the
cache never breaks provisioning.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from reprotokit.core.directory import get_version_file
from reprotokit.core.exceptions import VersionParseError
from reprotokit.core.filesystem import atomic_write
from reprotokit.core.version import Version
from reprotokit.releases.base import Release

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 60


@dataclass(frozen=True)
class CacheEntry:
    """A cached release and whether it has outlived the TTL."""

    release: Release
    stale: bool


class VersionCache:
    """
    Time-limited cache of the last resolved release.

    Example:
        >>> cache = VersionCache.for_backend(cache_root, "gcs")
        >>> entry = cache.read()
        >>> if entry is None or entry.stale:
        ...     cache.write(client.resolve_latest(constraint).release)
    """

    def __init__(
        self,
        path: Path,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize version cache.

        Args:
            path: Cache file location
            ttl_minutes: Age after which an entry is stale
            clock: Returns the current time in epoch seconds
        """
        self.path = Path(path)
        self.ttl_minutes = ttl_minutes
        self.clock = clock

    @classmethod
    def for_backend(
        cls,
        cache_root: Path,
        backend_name: str,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        clock: Callable[[], float] = time.time,
    ) -> "VersionCache":
        return cls(get_version_file(cache_root, backend_name), ttl_minutes, clock)

    def read(self) -> Optional[CacheEntry]:
        """
        Read the cached release.

        Returns:
            CacheEntry, or None if the file is missing or was corrupt
        """
        try:
            mtime = self.path.stat().st_mtime
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            release = _parse_release(raw.decode("utf-8"))
        except (ValueError, KeyError, TypeError, VersionParseError) as e:
            logger.warning(f"Removing corrupt version cache {self.path}: {e}")
            self.path.unlink(missing_ok=True)
            return None

        stale = self.clock() - mtime >= self.ttl_minutes * 60
        return CacheEntry(release, stale)

    def write(self, release: Release) -> None:
        """Store a release, replacing any previous entry."""
        content = json.dumps(
            {"version": str(release.version), "token": release.token}, indent=2
        )

        try:
            atomic_write(self.path, content)
            logger.debug(f"Cached release {release.version} in {self.path}")
        except OSError as e:
            logger.warning(f"Failed to write version cache {self.path}: {e}")

    def clear(self) -> bool:
        """
        Remove the cache file.

        Returns:
            True if a file was removed
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False

        logger.debug(f"Removed version cache {self.path}")
        return True


def _parse_release(content: str) -> Release:
    data = json.loads(content)

    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")

    version = data["version"]
    token = data.get("token")

    if not isinstance(version, str):
        raise TypeError("'version' must be a string")
    if token is not None and not isinstance(token, str):
        raise TypeError("'token' must be a string or null")

    return Release(Version.parse(version), token)


__all__ = ["VersionCache", "CacheEntry", "DEFAULT_TTL_MINUTES"]
