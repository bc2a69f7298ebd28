"""Configuration module for reprotokit.

This module provides YAML configuration parsing and validation for
reprotokit.yaml, with command line overrides applied on top.
"""

from reprotokit.config.parser import (
    ReprotoConfig,
    ConfigError,
    CONFIG_FILE_NAME,
    DEFAULT_VERSION_CONSTRAINT,
    load_config_data,
    parse_config,
    build_config,
    apply_overrides,
)

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
