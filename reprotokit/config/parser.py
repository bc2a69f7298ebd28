"""YAML configuration parser for reprotokit.

This module provides parsing and validation for reprotokit.yaml configuration
files, and the merging of command line overrides on top of them.

Example reprotokit.yaml:

    version: 1
    output: target/generated-sources/reproto
    paths: [src/main/reproto]
    targets: [io.reproto.example]
    version_constraint: "0.3"
    backend: gcs
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from reprotokit.core.directory import get_default_plugins_dir
from reprotokit.core.exceptions import ConfigError, VersionParseError
from reprotokit.core.filesystem import ARCHIVE_FORMATS
from reprotokit.core.version import Constraint
from reprotokit.releases.base import DEFAULT_REPOSITORY, GCS_BACKEND, RELEASE_BACKENDS
from reprotokit.releases.cache import DEFAULT_TTL_MINUTES
from reprotokit.runner.command import DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "reprotokit.yaml"
CONFIG_SCHEMA_VERSION = 1
DEFAULT_VERSION_CONSTRAINT = "0.3"

KNOWN_FIELDS = {
    "version",
    "output",
    "targets",
    "paths",
    "modules",
    "package_prefix",
    "language",
    "debug",
    "executable",
    "artifact",
    "download_url",
    "backend",
    "repository",
    "version_constraint",
    "plugins_dir",
    "cache_dir",
    "cache_ttl_minutes",
    "archive_format",
    "timeout",
    "skip",
}


@dataclass
class ReprotoConfig:
    """Complete reprotokit configuration, with paths resolved."""

    output: Optional[Path]
    targets: List[str]
    project_root: Path
    plugins_dir: Path
    version: int = CONFIG_SCHEMA_VERSION
    paths: List[Path] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    package_prefix: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    debug: bool = False
    executable: Optional[Path] = None
    artifact: Optional[str] = None
    download_url: Optional[str] = None
    backend: str = GCS_BACKEND  # 'gcs', 'github'
    repository: str = DEFAULT_REPOSITORY  # GitHub 'owner/name'
    version_constraint: str = DEFAULT_VERSION_CONSTRAINT
    cache_dir: Optional[Path] = None  # None: per-user cache directory
    cache_ttl_minutes: float = DEFAULT_TTL_MINUTES
    archive_format: Optional[str] = None  # None: backend default
    timeout: Optional[float] = None  # None: wait for the compiler forever
    skip: bool = False


def load_config_data(config_path: Path) -> Dict[str, Any]:
    """
    Read the raw mapping from a configuration file.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or is not a mapping
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping")

    return data


def parse_config(
    config_path: Path,
    project_root: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ReprotoConfig:
    """
    Parse reprotokit.yaml configuration file.

    Args:
        config_path: Path to reprotokit.yaml
        project_root: Base for relative paths (default: the file's directory)
        overrides: Values replacing those from the file (None values are ignored)

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    config_path = Path(config_path)
    data = load_config_data(config_path)

    if project_root is None:
        project_root = config_path.parent

    return build_config(data, project_root, overrides)


def apply_overrides(data: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge overrides into raw configuration data.

    Overrides whose value is None (or an empty list) leave the file's value in
    place; anything else replaces it.

    Raises:
        ConfigError: If an override names an unknown field
    """
    merged = dict(data)

    for key, value in (overrides or {}).items():
        if key not in KNOWN_FIELDS:
            raise ConfigError(f"Unknown configuration field: {key}")

        if value is None or value == []:
            continue

        logger.debug(f"Override {key}={value!r}")
        merged[key] = value

    return merged


def build_config(
    data: Dict[str, Any],
    project_root: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
    require_compile: bool = True,
) -> ReprotoConfig:
    """
    Validate raw configuration data and build a ReprotoConfig.

    Args:
        data: Mapping as loaded from YAML
        project_root: Base for relative paths
        overrides: Values replacing those in data
        require_compile: Require the fields only a compile run needs
            (output and at least one target)

    Raises:
        ConfigError: If configuration is invalid
    """
    data = apply_overrides(data, overrides)
    root = Path(project_root).absolute()

    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != CONFIG_SCHEMA_VERSION:
        raise ConfigError(
            f"Unsupported version: {data['version']} (expected {CONFIG_SCHEMA_VERSION})"
        )

    unknown = sorted(set(data) - KNOWN_FIELDS)
    if unknown:
        raise ConfigError(f"Unknown configuration fields: {', '.join(unknown)}")

    output = _optional_str(data, "output")
    if not output and require_compile:
        raise ConfigError("Missing required field: output")

    targets = _str_list(data, "targets")
    if not targets and require_compile:
        raise ConfigError("At least one target must be defined")

    backend = _optional_str(data, "backend") or GCS_BACKEND
    if backend not in RELEASE_BACKENDS:
        raise ConfigError(
            f"Invalid backend: {backend} (expected one of {list(RELEASE_BACKENDS)})"
        )

    archive_format = _optional_str(data, "archive_format")
    if archive_format is not None and archive_format not in ARCHIVE_FORMATS:
        raise ConfigError(
            f"Invalid archive_format: {archive_format} "
            f"(expected one of {list(ARCHIVE_FORMATS)})"
        )

    version_constraint = data.get("version_constraint", DEFAULT_VERSION_CONSTRAINT)
    # YAML reads 0.10 as the float 0.1
    if isinstance(version_constraint, bool) or not isinstance(version_constraint, (str, int)):
        raise ConfigError("version_constraint must be a quoted string, e.g. \"0.3\"")
    version_constraint = str(version_constraint)
    try:
        Constraint.parse(version_constraint)
    except VersionParseError as e:
        raise ConfigError(f"Invalid version_constraint: {e}")

    executable = _optional_str(data, "executable")
    plugins_dir = _optional_str(data, "plugins_dir")
    cache_dir = _optional_str(data, "cache_dir")

    return ReprotoConfig(
        version=data["version"],
        output=_resolve(root, output) if output else None,
        targets=targets,
        project_root=root,
        plugins_dir=(
            _resolve(root, plugins_dir) if plugins_dir else get_default_plugins_dir(root)
        ),
        paths=[_resolve(root, p) for p in _str_list(data, "paths")],
        modules=_str_list(data, "modules"),
        package_prefix=_optional_str(data, "package_prefix"),
        language=_optional_str(data, "language") or DEFAULT_LANGUAGE,
        debug=_bool(data, "debug"),
        executable=_resolve(root, executable) if executable else None,
        artifact=_optional_str(data, "artifact"),
        download_url=_optional_str(data, "download_url"),
        backend=backend,
        repository=_optional_str(data, "repository") or DEFAULT_REPOSITORY,
        version_constraint=version_constraint,
        cache_dir=_resolve(root, cache_dir) if cache_dir else None,
        cache_ttl_minutes=_positive_number(data, "cache_ttl_minutes", DEFAULT_TTL_MINUTES),
        archive_format=archive_format,
        timeout=_positive_number(data, "timeout", None),
        skip=_bool(data, "skip"),
    )


def _resolve(root: Path, value: Union[str, Path]) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return root / path


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)

    if value is None:
        return None

    if isinstance(value, Path):
        return str(value)

    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")

    return value


def _str_list(data: dict, key: str) -> List[str]:
    value = data.get(key)

    if value is None:
        return []

    if not isinstance(value, list) or not all(
        isinstance(item, (str, Path)) for item in value
    ):
        raise ConfigError(f"{key} must be a list of strings")

    return [str(item) for item in value]


def _bool(data: dict, key: str) -> bool:
    value = data.get(key, False)

    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false")

    return value


def _positive_number(data: dict, key: str, default: Optional[float]) -> Optional[float]:
    value = data.get(key)

    if value is None:
        return default

    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{key} must be a positive number")

    return value


__all__ = [
    "ReprotoConfig",
    "ConfigError",
    "CONFIG_FILE_NAME",
    "DEFAULT_VERSION_CONSTRAINT",
    "load_config_data",
    "parse_config",
    "build_config",
    "apply_overrides",
]
