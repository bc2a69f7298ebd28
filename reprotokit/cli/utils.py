"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from reprotokit.config.parser import (
    CONFIG_FILE_NAME,
    CONFIG_SCHEMA_VERSION,
    ReprotoConfig,
    build_config,
    load_config_data,
)
from reprotokit.core.exceptions import ConfigError
from reprotokit.provision.provisioner import ExecutableProvisioner, RuntimeEnvironment

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def get_project_root(args) -> Path:
    """Absolute project root from parsed arguments."""
    return Path(getattr(args, "project_root", None) or Path.cwd()).absolute()


def find_config_file(args) -> Optional[Path]:
    """
    Locate the configuration file for a command.

    Returns:
        The --config path if given, else <project-root>/reprotokit.yaml when it
        exists, else None

    Raises:
        ConfigError: If --config names a file that does not exist
    """
    if getattr(args, "config", None):
        config_file = Path(args.config)
        if not config_file.exists():
            raise ConfigError(f"Configuration file not found: {config_file}")
        return config_file

    default_config = get_project_root(args) / CONFIG_FILE_NAME
    if default_config.exists():
        return default_config

    logger.debug(f"Config file not found (optional): {default_config}")
    return None


def provisioning_overrides(args) -> Dict[str, Any]:
    """Configuration overrides from provisioning command line options."""
    return {
        "executable": getattr(args, "executable", None),
        "artifact": getattr(args, "artifact", None),
        "version_constraint": getattr(args, "version_constraint", None),
        "backend": getattr(args, "backend", None),
        "download_url": getattr(args, "download_url", None),
    }


def load_project_config(
    args, overrides: Optional[Dict[str, Any]] = None, require_compile: bool = True
) -> ReprotoConfig:
    """
    Load the project configuration with command line overrides applied.

    Without a configuration file, the overrides alone must form a valid
    configuration.

    Args:
        args: Parsed command line arguments
        overrides: Configuration values taken from the command line
        require_compile: Require output and targets (compile command)

    Raises:
        ConfigError: If the resulting configuration is invalid
    """
    config_file = find_config_file(args)

    if config_file is not None:
        logger.debug(f"Loading configuration from {config_file}")
        data = load_config_data(config_file)
    else:
        data = {"version": CONFIG_SCHEMA_VERSION}

    return build_config(data, get_project_root(args), overrides, require_compile)


def create_provisioner(config: ReprotoConfig) -> ExecutableProvisioner:
    """Create a provisioner for a configuration in the current environment."""
    environment = RuntimeEnvironment.detect(config.cache_dir)
    logger.debug(
        f"Cache: {environment.cache_root}, platform: {environment.platform_key}"
    )
    return ExecutableProvisioner.from_config(config, environment)


__all__ = [
    "get_project_root",
    "find_config_file",
    "provisioning_overrides",
    "load_project_config",
    "create_provisioner",
]
