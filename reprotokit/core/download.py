"""
Streaming download of release archives into the local cache.

Downloads are:
- Streamed in fixed-size chunks (never held in memory)
- Written to a temporary file next to the destination and renamed into place
  only once the stream is complete, so an interrupted download never leaves
  a file that looks finished
- Never retried; any failure propagates to the caller
"""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from reprotokit.core.exceptions import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 30


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int  # 0 when the server sent no content-length

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_downloaded / self.total_bytes * 100

    def __str__(self) -> str:
        mb_downloaded = self.bytes_downloaded / 1024 / 1024
        if self.total_bytes > 0:
            mb_total = self.total_bytes / 1024 / 1024
            return f"{mb_downloaded:.1f}/{mb_total:.1f} MB ({self.percentage:.1f}%)"
        return f"{mb_downloaded:.1f} MB"


def download_file(
    url: str,
    destination: Path,
    timeout: float = DEFAULT_TIMEOUT,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Path:
    """
    Download a URL to a destination file that must not exist yet.

    Args:
        url: URL to download from
        destination: Local path to save file
        timeout: Connect/read timeout in seconds for the HTTP request
        progress_callback: Optional callback invoked after each chunk

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the destination exists or the HTTP transfer fails
        ValueError: If URL or destination is empty
        OSError: If writing the file fails

    Example:
        >>> archive = cache_dir / "reproto-0.3.36-linux-x86_64.tar.gz"
        >>> if not archive.is_file():
        ...     download_file(url, archive)
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)

    if destination.exists():
        raise DownloadError(f"Download destination already exists: {destination}")

    destination.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Downloading archive to cache: {url}")

    # Temp file in same directory (ensures same filesystem for the rename)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".part"
    )
    temp_path = Path(temp_path_str)

    try:
        with open(temp_fd, "wb") as out:
            downloaded = _stream_to_file(url, out, timeout, progress_callback)

        if destination.exists():
            raise DownloadError(
                f"Download destination appeared while downloading: {destination}"
            )

        temp_path.replace(destination)

    except RequestException as e:
        _discard(temp_path)
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except Exception:
        _discard(temp_path)
        raise

    logger.info(f"Download complete: {destination} ({downloaded} bytes)")
    return destination


def _stream_to_file(
    url: str,
    out,
    timeout: float,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> int:
    """Copy the response body of ``url`` into ``out``, returning the byte count."""
    downloaded = 0

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()

        content_length = response.headers.get("content-length")
        total = int(content_length) if content_length else 0

        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue

            out.write(chunk)
            downloaded += len(chunk)

            if progress_callback:
                progress_callback(DownloadProgress(downloaded, total))

    return downloaded


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove partial download {path}: {e}")


__all__ = [
    "download_file",
    "DownloadProgress",
    "CHUNK_SIZE",
    "DEFAULT_TIMEOUT",
]
