"""
Pytest configuration and shared fixtures for reprotokit tests.
"""

import io
import os
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Generator, List, Optional, Tuple

import pytest

# (name, data or None for a directory, mode)
ArchiveSpec = List[Tuple[str, Optional[bytes], int]]


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = temp_dir / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))
    monkeypatch.setenv("LOCALAPPDATA", str(fake_home / "AppData" / "Local"))
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)

    return fake_home


@pytest.fixture
def no_network(monkeypatch):
    """Disable network access for tests."""
    import socket

    def guard(*args, **kwargs):
        raise RuntimeError("Network access not allowed in this test")

    monkeypatch.setattr(socket, "socket", guard)


# ============================================================================
# Archive Fixtures
# ============================================================================


def build_tar_gz(path: Path, entries: ArchiveSpec) -> Path:
    """Write a gzip-compressed tar archive with the given entries."""
    with tarfile.open(path, "w:gz") as tar:
        for name, data, mode in entries:
            info = tarfile.TarInfo(name)
            info.mode = mode

            if data is None:
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
            else:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))

    return path


def build_zip(path: Path, entries: ArchiveSpec) -> Path:
    """Write a zip archive with the given entries and Unix modes."""
    with zipfile.ZipFile(path, "w") as zf:
        for name, data, mode in entries:
            if data is None:
                info = zipfile.ZipInfo(name.rstrip("/") + "/")
                info.external_attr = (0o040000 | mode) << 16
                zf.writestr(info, b"")
            else:
                info = zipfile.ZipInfo(name)
                info.external_attr = (0o100000 | mode) << 16 if mode else 0
                zf.writestr(info, data)

    return path


@pytest.fixture
def tar_gz_factory(temp_dir: Path) -> Callable[[str, ArchiveSpec], Path]:
    """Build tar.gz archives inside the test's temporary directory."""

    def factory(name: str, entries: ArchiveSpec) -> Path:
        return build_tar_gz(temp_dir / name, entries)

    return factory


@pytest.fixture
def zip_factory(temp_dir: Path) -> Callable[[str, ArchiveSpec], Path]:
    """Build zip archives inside the test's temporary directory."""

    def factory(name: str, entries: ArchiveSpec) -> Path:
        return build_zip(temp_dir / name, entries)

    return factory


# ============================================================================
# Executable Fixtures
# ============================================================================


@pytest.fixture
def stub_executable(temp_dir: Path) -> Callable[[str, str], Path]:
    """
    Create executable shell scripts standing in for the compiler.

    The returned factory takes a file name and a script body.
    """

    def factory(name: str, body: str) -> Path:
        path = temp_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        os.chmod(path, 0o755)
        return path

    return factory

