"""
Unit tests for platform detection.
"""

from unittest.mock import patch

import pytest

from reprotokit.core.platform import (
    PlatformKey,
    clear_platform_cache,
    detect_platform_key,
    platform_key_for,
    resolve_arch,
    resolve_os,
)


@pytest.fixture(autouse=True)
def fresh_platform_cache():
    """Clear the detection cache around every test."""
    clear_platform_cache()
    yield
    clear_platform_cache()


class TestResolveOs:
    """Test operating system mapping."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Linux", "linux"),
            ("linux", "linux"),
            ("Darwin", "osx"),
            ("Mac OS X", "osx"),
            ("Windows", "win"),
            ("win32", "win"),
            ("FreeBSD", None),
            ("SunOS", None),
        ],
    )
    def test_mapping(self, name, expected):
        """Test OS names map to archive tags."""
        assert resolve_os(name) == expected


class TestResolveArch:
    """Test architecture mapping."""

    @pytest.mark.parametrize(
        "machine,expected",
        [
            ("x86_64", "x86_64"),
            ("AMD64", "x86_64"),
            ("x86_32", "x86_32"),
            ("i686", "x86_32"),
            ("arm64", None),
            ("aarch64", None),
            ("", None),
        ],
    )
    def test_mapping(self, machine, expected):
        """Test machine names map to archive tags."""
        assert resolve_arch(machine) == expected


class TestPlatformKey:
    """Test PlatformKey construction and rendering."""

    def test_platform_string(self):
        """Test archive suffix rendering."""
        key = PlatformKey("linux", "x86_64")
        assert key.platform_string() == "linux-x86_64"
        assert str(key) == "linux-x86_64"

    def test_is_windows(self):
        """Test Windows detection."""
        assert PlatformKey("win", "x86_64").is_windows
        assert not PlatformKey("osx", "x86_64").is_windows

    def test_platform_key_for_supported(self):
        """Test both components resolved yields a key."""
        assert platform_key_for("Darwin", "x86_64") == PlatformKey("osx", "x86_64")

    @pytest.mark.parametrize(
        "os_name,machine", [("Linux", "aarch64"), ("Plan9", "x86_64")]
    )
    def test_platform_key_for_unsupported(self, os_name, machine):
        """Test any unresolved component declines."""
        assert platform_key_for(os_name, machine) is None


class TestDetectPlatformKey:
    """Test host detection."""

    def test_detect_uses_host(self):
        """Test detection reads platform.system/machine."""
        with patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="x86_64"
        ):
            assert detect_platform_key() == PlatformKey("linux", "x86_64")

    def test_detect_is_cached(self):
        """Test detection runs once until the cache is cleared."""
        with patch("platform.system", return_value="Linux") as mock_system, patch(
            "platform.machine", return_value="x86_64"
        ):
            detect_platform_key()
            detect_platform_key()

            assert mock_system.call_count == 1

            clear_platform_cache()
            detect_platform_key()

            assert mock_system.call_count == 2
