"""
Concurrent access control for reprotokit.

Two builds on the same machine may decide at the same time that a release
archive must be downloaded and extracted. This module provides file-based
locks, keyed by archive name, so only one process performs that work while
the other waits and then reuses the result.

Usage:
    from reprotokit.core.locking import LockManager

    lock_manager = LockManager(cache_root / "lock")
    with lock_manager.archive_lock("reproto-0.3.36-linux-x86_64.tar.gz"):
        # Download and extract
        pass
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from reprotokit.core.exceptions import ProvisioningError

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_LOCK_TIMEOUT = 300


class LockTimeoutError(ProvisioningError):
    """Raised when a lock cannot be acquired within its timeout."""

    pass


def _safe_lock_name(name: str) -> str:
    return name.replace("/", "-").replace("\\", "-").replace(":", "-")


class LockManager:
    """
    Manages cross-process locks for cached release archives.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic release on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (created if missing)
        """
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def lock_path(self, archive_name: str) -> Path:
        """Lock file used for a given archive name."""
        return self.lock_dir / f"archive-{_safe_lock_name(archive_name)}.lock"

    @contextmanager
    def archive_lock(
        self, archive_name: str, timeout: float = DEFAULT_ARCHIVE_LOCK_TIMEOUT
    ):
        """
        Acquire the lock for a release archive (download and extraction).

        Args:
            archive_name: Archive file name (e.g. 'reproto-0.3.36-linux-x86_64.tar.gz')
            timeout: Maximum wait time in seconds (default: 300 for long downloads)

        Yields:
            None

        Raises:
            LockTimeoutError: If lock can't be acquired within timeout
        """
        lock_path = self.lock_path(archive_name)
        lock = FileLock(str(lock_path), timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired archive lock: {lock_path}")
                yield
                logger.debug(f"Released archive lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire lock for {archive_name} after {timeout}s. "
                "Another process may be downloading this archive."
            )
            raise LockTimeoutError(
                f"Could not acquire lock for {archive_name} after {timeout}s. "
                "Another process may be downloading this archive."
            ) from e

    def cleanup_stale_locks(self, max_age_hours: int = 24) -> int:
        """
        Remove lock files older than max_age_hours.

        Args:
            max_age_hours: Maximum age in hours before lock is considered stale

        Returns:
            Number of stale locks removed
        """
        if not self.lock_dir.exists():
            return 0

        current_time = time.time()
        removed_count = 0

        for lock_file in self.lock_dir.glob("*.lock"):
            try:
                age_hours = (current_time - lock_file.stat().st_mtime) / 3600

                if age_hours > max_age_hours:
                    lock_file.unlink()
                    logger.info(f"Removed stale lock file: {lock_file}")
                    removed_count += 1
            except OSError as e:
                # Lock may be in use or already deleted
                logger.debug(f"Could not remove lock {lock_file}: {e}")

        return removed_count


__all__ = [
    "LockManager",
    "LockTimeoutError",
    "DEFAULT_ARCHIVE_LOCK_TIMEOUT",
]
