"""Compiler executable provisioning for reprotokit."""

from reprotokit.provision.artifact import (
    ArtifactCoordinate,
    ArtifactResolver,
    LocalRepositoryResolver,
    parse_coordinate,
)
from reprotokit.provision.provisioner import (
    ExecutableProvisioner,
    RuntimeEnvironment,
    EXECUTABLE_NAME,
    archive_name,
)

__all__ = [
    "ArtifactCoordinate",
    "ArtifactResolver",
    "LocalRepositoryResolver",
    "parse_coordinate",
    "ExecutableProvisioner",
    "RuntimeEnvironment",
    "EXECUTABLE_NAME",
    "archive_name",
]
