"""
Cleanup command implementation.

Removes cached version files, downloaded release archives and stale lock
files from the global cache.
"""

import logging
from pathlib import Path
from typing import List

from reprotokit.core.directory import get_backend_cache_dir, get_global_cache_dir
from reprotokit.core.locking import LockManager
from reprotokit.provision.provisioner import LOCK_DIR_NAME
from reprotokit.releases.base import RELEASE_BACKENDS
from reprotokit.releases.cache import VersionCache

logger = logging.getLogger(__name__)


def find_cached_files(cache_root: Path) -> List[Path]:
    """
    List cached version files and archives of every backend.

    Args:
        cache_root: Global cache directory

    Returns:
        Files that cleanup would remove, in backend order
    """
    files = []

    for backend in RELEASE_BACKENDS:
        backend_dir = get_backend_cache_dir(cache_root, backend)
        if not backend_dir.is_dir():
            continue
        files.extend(sorted(p for p in backend_dir.iterdir() if p.is_file()))

    return files


def run(args) -> int:
    """
    Run the cleanup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    cache_root = Path(args.cache_dir) if args.cache_dir else get_global_cache_dir()
    files = find_cached_files(cache_root)

    if not files:
        print(f"Nothing to clean in {cache_root}")
        return 0

    if args.dry_run:
        print("Would remove:")
        for path in files:
            print(f"  {path}")
        return 0

    for backend in RELEASE_BACKENDS:
        VersionCache.for_backend(cache_root, backend).clear()

    removed = 0
    for path in files:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed {path}")
        removed += 1

    lock_dir = cache_root / LOCK_DIR_NAME
    if lock_dir.is_dir():
        LockManager(lock_dir).cleanup_stale_locks()

    print(f"Removed {removed} cached file(s) from {cache_root}")
    return 0
