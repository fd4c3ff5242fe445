"""Configuration loading system.

Provides YAML configuration loading with:
- Hierarchical file includes with cycle detection
- Dot-notation overrides (in an `override` block or from the command line)

Main Entry Point
----------------
load_config_file : Load a configuration file
"""

from .errors import (
    ConfigCycleError,
    ConfigError,
    ConfigIncludeError,
    ConfigPathError,
    ConfigTypeError,
)
from .load import load_config, load_config_file, resolve_config_path
from .operations import deep_merge, parse_value, set_nested_value

__all__ = [
    "load_config",
    "load_config_file",
    "resolve_config_path",
    "deep_merge",
    "parse_value",
    "set_nested_value",
    "ConfigError",
    "ConfigIncludeError",
    "ConfigCycleError",
    "ConfigPathError",
    "ConfigTypeError",
]
