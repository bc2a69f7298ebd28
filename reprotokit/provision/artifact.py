"""
Artifact coordinate parsing and resolution.

A pinned compiler binary can be named by an artifact coordinate::

    groupId:artifactId:version[:type[:classifier]]

The type defaults to ``exe``. Coordinates are resolved to a local file by an
ArtifactResolver; LocalRepositoryResolver looks them up in a Maven-style
repository tree such as ``~/.m2/repository``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reprotokit.core.exceptions import ArtifactResolutionError, ConfigError

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_TYPE = "exe"


@dataclass(frozen=True)
class ArtifactCoordinate:
    """
    Parsed artifact coordinate.

    Attributes:
        group_id: Dotted group id (e.g. 'se.tedro.reproto')
        artifact_id: Artifact id
        version: Artifact version string
        type: File extension (default: 'exe')
        classifier: Optional classifier (e.g. 'linux-x86_64')
    """

    group_id: str
    artifact_id: str
    version: str
    type: str = DEFAULT_ARTIFACT_TYPE
    classifier: Optional[str] = None

    @property
    def file_name(self) -> str:
        """
        File name of the artifact in a repository.

        Example:
            >>> parse_coordinate("a.b:tool:1.0:exe:linux").file_name
            'tool-1.0-linux.exe'
        """
        name = f"{self.artifact_id}-{self.version}"
        if self.classifier:
            name += f"-{self.classifier}"
        return f"{name}.{self.type}"

    def __str__(self) -> str:
        parts = [self.group_id, self.artifact_id, self.version, self.type]
        if self.classifier:
            parts.append(self.classifier)
        return ":".join(parts)


def parse_coordinate(text: str) -> ArtifactCoordinate:
    """
    Parse an artifact coordinate string.

    Raises:
        ConfigError: If the coordinate does not have 3 to 5 non-empty parts
    """
    parts = text.strip().split(":")

    if not 3 <= len(parts) <= 5 or not all(parts):
        raise ConfigError(
            f"Invalid artifact coordinate '{text}': expected "
            "groupId:artifactId:version[:type[:classifier]]"
        )

    group_id, artifact_id, version = parts[:3]
    artifact_type = parts[3] if len(parts) > 3 else DEFAULT_ARTIFACT_TYPE
    classifier = parts[4] if len(parts) > 4 else None

    return ArtifactCoordinate(group_id, artifact_id, version, artifact_type, classifier)


class ArtifactResolver(ABC):
    """Resolves artifact coordinates to local files."""

    @abstractmethod
    def resolve(self, coordinate: ArtifactCoordinate) -> Path:
        """
        Resolve a coordinate to an existing local file.

        Raises:
            ArtifactResolutionError: If the artifact is not available
        """
        pass


class LocalRepositoryResolver(ArtifactResolver):
    """
    Resolves coordinates against a Maven-style local repository.

    Example:
        >>> resolver = LocalRepositoryResolver()
        >>> resolver.artifact_path(parse_coordinate("se.tedro:reproto:0.3.36"))
        PosixPath('/home/user/.m2/repository/se/tedro/reproto/0.3.36/reproto-0.3.36.exe')
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root else Path.home() / ".m2" / "repository"

    def artifact_path(self, coordinate: ArtifactCoordinate) -> Path:
        """Location of an artifact inside the repository tree."""
        return (
            self.root.joinpath(*coordinate.group_id.split("."))
            / coordinate.artifact_id
            / coordinate.version
            / coordinate.file_name
        )

    def resolve(self, coordinate: ArtifactCoordinate) -> Path:
        path = self.artifact_path(coordinate)

        if not path.is_file():
            raise ArtifactResolutionError(
                f"Artifact {coordinate} not found in {self.root} (expected {path})"
            )

        logger.debug(f"Resolved artifact {coordinate} to {path}")
        return path


__all__ = [
    "ArtifactCoordinate",
    "ArtifactResolver",
    "LocalRepositoryResolver",
    "parse_coordinate",
    "DEFAULT_ARTIFACT_TYPE",
]
