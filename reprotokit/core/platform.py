"""
Platform detection for reprotokit.

Release archives are published per operating system and CPU architecture,
named with the tags used below:

- OS: 'linux', 'osx', 'win'
- Architecture: 'x86_64', 'x86_32'

Any other host yields no platform key; callers then decline to download a
binary and fall back to a compiler found on PATH.

Usage:
    from reprotokit.core.platform import detect_platform_key

    key = detect_platform_key()
    if key is not None:
        print(f"Archive suffix: {key.platform_string()}")
"""

import functools
import logging
import platform
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

SUPPORTED_OS = ("linux", "osx", "win")
SUPPORTED_ARCH = ("x86_64", "x86_32")


@dataclass(frozen=True)
class PlatformKey:
    """
    Operating system and architecture tags used in archive names.

    Attributes:
        os: Operating system tag ('linux', 'osx', 'win')
        arch: Architecture tag ('x86_64', 'x86_32')
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Get the platform part of an archive name.

        Example:
            >>> PlatformKey('linux', 'x86_64').platform_string()
            'linux-x86_64'
        """
        return f"{self.os}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == "win"

    def __str__(self) -> str:
        return self.platform_string()


def resolve_os(os_name: str) -> Optional[str]:
    """
    Map an operating system name to its archive tag.

    Args:
        os_name: Name as reported by the host (e.g. 'Linux', 'Darwin', 'Windows')

    Returns:
        'linux', 'osx', 'win' or None if the OS has no published binaries
    """
    name = os_name.lower()

    if "linux" in name:
        return "linux"
    if "darwin" in name or "mac" in name:
        return "osx"
    if "windows" in name or "win32" in name:
        return "win"

    return None


def resolve_arch(machine: str) -> Optional[str]:
    """
    Map a CPU architecture name to its archive tag.

    Args:
        machine: Name as reported by the host (e.g. 'x86_64', 'AMD64', 'i686')

    Returns:
        'x86_64', 'x86_32' or None if the architecture has no published binaries
    """
    name = machine.lower()

    if name in ("x86_64", "amd64", "x64"):
        return "x86_64"
    if name in ("x86_32", "i386", "i686", "x86"):
        return "x86_32"

    return None


def platform_key_for(os_name: str, machine: str) -> Optional[PlatformKey]:
    """
    Build a platform key from raw host names.

    Returns:
        PlatformKey, or None when either component is unsupported
    """
    os_tag = resolve_os(os_name)
    arch_tag = resolve_arch(machine)

    if os_tag is None or arch_tag is None:
        logger.debug(
            f"No published binaries for platform: os={os_name!r}, arch={machine!r}"
        )
        return None

    return PlatformKey(os=os_tag, arch=arch_tag)


@functools.lru_cache(maxsize=1)
def detect_platform_key() -> Optional[PlatformKey]:
    """
    Detect the platform key of the current host.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformKey, or None when the host has no published binaries
    """
    return platform_key_for(platform.system(), platform.machine())


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform_key() to re-detect.
    """
    detect_platform_key.cache_clear()


__all__ = [
    "PlatformKey",
    "SUPPORTED_OS",
    "SUPPORTED_ARCH",
    "resolve_os",
    "resolve_arch",
    "platform_key_for",
    "detect_platform_key",
    "clear_platform_cache",
]
