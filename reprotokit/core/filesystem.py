"""
File system utilities for reprotokit.

This module provides:
- Streaming archive extraction (tar.gz, zip) that restores POSIX permission
  bits entry by entry and renames the compiler executable
- Safe file operations (atomic writes, guarded directory removal)
"""

import logging
import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
import zlib
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterator, Optional, Tuple, Union

from reprotokit.core.exceptions import (
    ArchiveExtractionError,
    CorruptArchiveError,
    InsecureArchiveError,
    ReprotoKitError,
    UnsupportedArchiveFormat,
)

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"

TAR_GZ = "tar.gz"
ZIP = "zip"
ARCHIVE_FORMATS = (TAR_GZ, ZIP)

COPY_BUFFER_SIZE = 4096

# Raw mode bit -> permission flag, one entry per owner/group/other x r/w/x
PERMISSION_BITS = (
    (0o400, stat.S_IRUSR),
    (0o200, stat.S_IWUSR),
    (0o100, stat.S_IXUSR),
    (0o040, stat.S_IRGRP),
    (0o020, stat.S_IWGRP),
    (0o010, stat.S_IXGRP),
    (0o004, stat.S_IROTH),
    (0o002, stat.S_IWOTH),
    (0o001, stat.S_IXOTH),
)

EXECUTE_ALL = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class FilesystemError(ReprotoKitError):
    """Base exception for filesystem operations."""

    pass


# ============================================================================
# Archive Extraction
# ============================================================================


@dataclass(frozen=True)
class ArchiveEntry:
    """
    A single member of an archive.

    Attributes:
        name: Member path inside the archive (POSIX separators)
        size: Declared size of the member's data in bytes
        is_directory: Whether the member is a directory
        mode: Raw Unix mode bits, or None when the archive did not record any
    """

    name: str
    size: int
    is_directory: bool
    mode: Optional[int]


def convert_permissions(mode: int) -> int:
    """
    Convert raw octal mode bits into permission flags for ``os.chmod``.

    Each of the nine owner/group/other read/write/execute bits is mapped
    independently; all other bits (setuid, sticky, file type) are dropped.

    Example:
        >>> oct(convert_permissions(0o100755))
        '0o755'
    """
    permissions = 0

    for mask, flag in PERMISSION_BITS:
        if mode & mask:
            permissions |= flag

    return permissions


def detect_archive_format(archive_path: Union[str, Path]) -> str:
    """
    Detect the archive format from its file name.

    Returns:
        'tar.gz' or 'zip'

    Raises:
        UnsupportedArchiveFormat: If the name has any other extension
    """
    name = Path(archive_path).name.lower()

    if name.endswith((".tar.gz", ".tgz")):
        return TAR_GZ
    if name.endswith(".zip"):
        return ZIP

    raise UnsupportedArchiveFormat(
        f"Unsupported archive format: {Path(archive_path).name}. "
        "Supported: .tar.gz, .zip"
    )


def _validate_archive_path(name: str, destination: Path) -> Path:
    """
    Resolve an archive member path and ensure it stays under destination.

    Raises:
        InsecureArchiveError: If the member path attempts directory traversal
    """
    member_path = (destination / name).resolve()

    if not member_path.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{name}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )

    return member_path


def _iter_tar_entries(
    archive_path: Path,
) -> Iterator[Tuple[ArchiveEntry, Optional[BinaryIO]]]:
    """Yield entries of a gzip-compressed tar archive in stream mode."""
    with tarfile.open(archive_path, mode="r|gz") as tar:
        for member in tar:
            if member.isdir():
                yield ArchiveEntry(member.name, 0, True, member.mode), None
            elif member.isfile():
                entry = ArchiveEntry(member.name, member.size, False, member.mode)
                yield entry, tar.extractfile(member)
            else:
                logger.debug(f"Skipping non-regular archive member: {member.name}")


def _iter_zip_entries(
    archive_path: Path,
) -> Iterator[Tuple[ArchiveEntry, Optional[BinaryIO]]]:
    """Yield entries of a zip archive, opening one member stream at a time."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        for info in zf.infolist():
            mode = (info.external_attr >> 16) & 0o7777
            entry = ArchiveEntry(
                name=info.filename,
                size=info.file_size,
                is_directory=info.is_dir(),
                mode=mode or None,
            )

            if entry.is_directory:
                yield entry, None
                continue

            with zf.open(info, "r") as stream:
                yield entry, stream


class ArchiveExtractor:
    """
    Streams archive members to disk and locates the compiler executable.

    Example:
        >>> extractor = ArchiveExtractor("reproto", executable_target_name="reproto-0.3.36")
        >>> exe = extractor.extract(Path("reproto-0.3.36-linux-x86_64.tar.gz"), plugins_dir)
        >>> print(exe)
        .../plugins/reproto-0.3.36
    """

    def __init__(
        self,
        executable_name: str,
        executable_target_name: Optional[str] = None,
        force_executable: Optional[bool] = None,
    ):
        """
        Initialize the extractor.

        Args:
            executable_name: Archive member name of the tool executable
            executable_target_name: File name to give the extracted executable
                (default: keep the member name)
            force_executable: Force execute bits on the executable regardless of
                its recorded mode (default: only for zip archives, which do
                not reliably record them)
        """
        self.executable_name = executable_name
        self.executable_target_name = executable_target_name
        self.force_executable = force_executable

    def extract(
        self, archive_path: Union[str, Path], destination: Union[str, Path]
    ) -> Optional[Path]:
        """
        Extract every member of an archive into destination.

        Args:
            archive_path: Path to a .tar.gz or .zip archive
            destination: Directory to extract into (created if missing)

        Returns:
            Path of the extracted executable, or None if the archive had none

        Raises:
            CorruptArchiveError: If a member's data ends before its declared size
            InsecureArchiveError: If a member path escapes destination
            UnsupportedArchiveFormat: If the archive format is not recognized
            ArchiveExtractionError: If the archive does not exist
        """
        archive_path = Path(archive_path)
        destination = Path(destination)

        if not archive_path.is_file():
            raise ArchiveExtractionError(f"Archive not found: {archive_path}")

        archive_format = detect_archive_format(archive_path)

        if archive_format == ZIP:
            entries = _iter_zip_entries(archive_path)
        else:
            entries = _iter_tar_entries(archive_path)

        force_executable = self.force_executable
        if force_executable is None:
            force_executable = archive_format == ZIP

        destination.mkdir(parents=True, exist_ok=True)

        executable = None
        count = 0

        try:
            with closing(entries):
                for entry, stream in entries:
                    extracted = self._extract_entry(
                        entry, stream, destination, force_executable
                    )
                    if extracted is not None:
                        executable = extracted
                    count += 1
        except (tarfile.TarError, zipfile.BadZipFile, EOFError, zlib.error) as e:
            raise CorruptArchiveError(f"Corrupt archive {archive_path}: {e}") from e

        logger.info(f"Extracted {count} entries from {archive_path.name}")
        return executable

    def _is_executable_entry(self, entry: ArchiveEntry) -> bool:
        return str(PurePosixPath(entry.name)) == self.executable_name

    def _extract_entry(
        self,
        entry: ArchiveEntry,
        stream: Optional[BinaryIO],
        destination: Path,
        force_executable: bool,
    ) -> Optional[Path]:
        """Extract one member; returns its path when it is the executable."""
        path = _validate_archive_path(entry.name, destination)

        if entry.is_directory:
            path.mkdir(parents=True, exist_ok=True)
            return None

        is_executable = self._is_executable_entry(entry)

        if is_executable and self.executable_target_name:
            path = destination / self.executable_target_name

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "xb") as out:
            _copy_exact(stream, out, entry.size, entry.name)

        if entry.mode is not None:
            os.chmod(path, convert_permissions(entry.mode))

        if is_executable and force_executable:
            os.chmod(path, stat.S_IMODE(path.stat().st_mode) | EXECUTE_ALL)

        logger.debug(f"Extracted: {path}")
        return path if is_executable else None


def _copy_exact(stream: BinaryIO, out: BinaryIO, size: int, name: str) -> None:
    """
    Copy exactly ``size`` bytes from stream to out.

    Raises:
        CorruptArchiveError: If the stream ends early
    """
    remaining = size

    while remaining > 0:
        chunk = stream.read(min(COPY_BUFFER_SIZE, remaining))

        if not chunk:
            raise CorruptArchiveError(
                f"Failed to read archive member '{name}': "
                f"{remaining} of {size} bytes missing"
            )

        out.write(chunk)
        remaining -= len(chunk)


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    executable_name: str,
    executable_target_name: Optional[str] = None,
) -> Optional[Path]:
    """
    Extract an archive and return the path of its executable member.

    Convenience wrapper around ArchiveExtractor.

    Example:
        >>> extract_archive('reproto-0.3.36-win-x86_64.zip', 'plugins', 'reproto.exe')
    """
    extractor = ArchiveExtractor(executable_name, executable_target_name)
    return extractor.extract(archive_path, destination)


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    Readers never observe a partially-written file; the last writer wins.

    Example:
        >>> atomic_write('version', '{"version": "0.3.36", "token": null}')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Remove a directory tree, optionally refusing paths outside a prefix.

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not path.is_relative_to(require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, failed_path, exc_info):
                if not os.access(failed_path, os.W_OK):
                    os.chmod(failed_path, stat.S_IWRITE)
                    func(failed_path)
                else:
                    raise exc_info[1]

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def is_executable_file(path: Union[str, Path]) -> bool:
    """Check whether path is a regular file the current user may execute."""
    path = Path(path)
    return path.is_file() and os.access(path, os.X_OK)


__all__ = [
    "FilesystemError",
    "ArchiveEntry",
    "ArchiveExtractor",
    "ARCHIVE_FORMATS",
    "TAR_GZ",
    "ZIP",
    "convert_permissions",
    "detect_archive_format",
    "extract_archive",
    "atomic_write",
    "safe_rmtree",
    "is_executable_file",
]
