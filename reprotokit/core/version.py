"""
Version model and prefix constraints for compiler releases.

Versions are dotted sequences of non-negative integers ("0.3.36"). They are
ordered component by component; when one version is a strict prefix of the
other, the shorter one sorts first, so ``0.1 < 0.1.0``. This is not semantic
versioning and must not be used as a general version comparator.

Constraints use the same syntax and match every version that starts with the
same components: constraint ``0.3`` matches ``0.3``, ``0.3.0`` and
``0.3.36`` but not ``0.4.0``.

Usage:
    from reprotokit.core.version import parse_version, parse_constraint

    versions = [parse_version(v) for v in ("0.3.1", "0.3.10", "0.4.0")]
    constraint = parse_constraint("0.3")
    latest = max(v for v in versions if constraint.matches(v))
    print(latest)  # 0.3.10
"""

import re
from typing import Iterable, Tuple

from reprotokit.core.exceptions import VersionParseError

# Components are unsigned 32-bit integers
MAX_COMPONENT = 2**32 - 1

_COMPONENT_RE = re.compile(r"[0-9]+")


def _parse_components(text: str) -> Tuple[int, ...]:
    """
    Parse a dotted string into integer components.

    Args:
        text: Dotted version string (surrounding whitespace is ignored)

    Returns:
        Tuple of integer components

    Raises:
        VersionParseError: If any component is empty, non-numeric or too large
    """
    parts = []

    for token in text.strip().split("."):
        if not _COMPONENT_RE.fullmatch(token):
            raise VersionParseError(text, token)

        value = int(token)
        if value > MAX_COMPONENT:
            raise VersionParseError(text, token)

        parts.append(value)

    return tuple(parts)


class Version:
    """
    Immutable dotted numeric version.

    Example:
        >>> Version.parse("0.1") < Version.parse("0.1.0")
        True
        >>> str(Version.parse("0.3.36"))
        '0.3.36'
    """

    __slots__ = ("_parts",)

    def __init__(self, parts: Iterable[int]):
        parts = tuple(parts)
        if not parts:
            raise ValueError("Version requires at least one component")
        if any(p < 0 for p in parts):
            raise ValueError(f"Version components must be non-negative: {parts}")
        self._parts = parts

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse a dotted string such as ``"0.3.36"``."""
        return cls(_parse_components(text))

    @property
    def parts(self) -> Tuple[int, ...]:
        return self._parts

    def compare(self, other: "Version") -> int:
        """
        Compare with another version.

        Returns:
            -1, 0 or 1. A strict prefix compares as less than the longer version.
        """
        for a, b in zip(self._parts, other._parts):
            if a != b:
                return -1 if a < b else 1

        if len(self._parts) == len(other._parts):
            return 0

        return -1 if len(self._parts) < len(other._parts) else 1

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) >= 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def __str__(self) -> str:
        return ".".join(str(p) for p in self._parts)

    def __repr__(self) -> str:
        return f"Version('{self}')"


class Constraint:
    """
    Dotted prefix requirement for versions.

    Example:
        >>> Constraint.parse("0.1").matches(Version.parse("0.1.99"))
        True
        >>> Constraint.parse("0.1").matches(Version.parse("0.2.99"))
        False
    """

    __slots__ = ("_parts",)

    def __init__(self, parts: Iterable[int]):
        parts = tuple(parts)
        if not parts:
            raise ValueError("Constraint requires at least one component")
        self._parts = parts

    @classmethod
    def parse(cls, text: str) -> "Constraint":
        """Parse a dotted string such as ``"0.3"``."""
        return cls(_parse_components(text))

    @property
    def parts(self) -> Tuple[int, ...]:
        return self._parts

    def matches(self, version: Version) -> bool:
        """Check whether ``version`` starts with this constraint's components."""
        if len(version.parts) < len(self._parts):
            return False

        return version.parts[: len(self._parts)] == self._parts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Constraint):
            return NotImplemented
        return self._parts == other._parts

    def __hash__(self) -> int:
        return hash(("constraint", self._parts))

    def __str__(self) -> str:
        return ".".join(str(p) for p in self._parts)

    def __repr__(self) -> str:
        return f"Constraint('{self}')"


def parse_version(text: str) -> Version:
    """
    Parse a version string.

    Raises:
        VersionParseError: If the string is malformed
    """
    return Version.parse(text)


def parse_constraint(text: str) -> Constraint:
    """
    Parse a constraint string.

    Raises:
        VersionParseError: If the string is malformed
    """
    return Constraint.parse(text)


def compare(a: Version, b: Version) -> int:
    """Compare two versions, returning -1, 0 or 1."""
    return a.compare(b)


def matches(constraint: Constraint, version: Version) -> bool:
    """Check whether ``version`` satisfies ``constraint``."""
    return constraint.matches(version)


__all__ = [
    "Version",
    "Constraint",
    "parse_version",
    "parse_constraint",
    "compare",
    "matches",
    "MAX_COMPONENT",
]
