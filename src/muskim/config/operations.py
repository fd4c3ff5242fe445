"""Operations and utilities for configuration processing.

This module contains helper functions for:
- Merging dictionaries
- Parsing values provided as strings
- Setting nested values using dot notation
- Extracting the include/override directives from a loaded file
"""

from copy import deepcopy
from typing import Any, Dict, List, Tuple

import yaml

from .errors import ConfigError, ConfigPathError, ConfigTypeError

__all__ = [
    "deep_merge",
    "parse_value",
    "set_nested_value",
    "extract_directives",
]


def deep_merge(
    base_dict: Dict[str, Any], override_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Recursively merge override_dict into base_dict.

    Parameters
    ----------
    base_dict : Dict[str, Any]
        Base dictionary
    override_dict : Dict[str, Any]
        Override dictionary

    Returns
    -------
    Dict[str, Any]
        Merged dictionary (new copy)
    """
    result = deepcopy(base_dict)
    for key, value in override_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def parse_value(value_str: Any) -> Any:
    """Parse a string value into the appropriate Python type.

    Parameters
    ----------
    value_str : Any
        Value to parse (if string, attempts YAML parsing)

    Returns
    -------
    Any
        Parsed value
    """
    if not isinstance(value_str, str) or value_str.strip() == "":
        return value_str

    try:
        return yaml.safe_load(value_str)
    except yaml.YAMLError:
        return value_str


def set_nested_value(
    config: Dict[str, Any],
    key_path: str,
    value: Any,
    delete: bool = False,
    only_if_exists: bool = False,
) -> Tuple[Dict[str, Any], bool]:
    """Set or delete a nested value using dot notation.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary
    key_path : str
        Dot-separated path (e.g., "selection.min_pt")
    value : Any
        Value to set (ignored if delete=True)
    delete : bool, default False
        If True, delete the key
    only_if_exists : bool, default False
        If True, only set if the parent path exists

    Returns
    -------
    Tuple[Dict[str, Any], bool]
        (modified config, whether operation was applied)

    Raises
    ------
    ConfigPathError
        If deleting a key path which does not exist
    ConfigTypeError
        If the path traverses a non-dict value
    """
    keys = key_path.split(".")
    current = config
    for i, key in enumerate(keys[:-1]):
        if key not in current:
            if delete:
                partial_path = ".".join(keys[: i + 1])
                raise ConfigPathError(
                    f"Cannot delete '{key_path}': path '{partial_path}' does not exist"
                )
            if only_if_exists:
                return config, False
            current[key] = {}

        elif not isinstance(current[key], dict):
            raise ConfigTypeError(f"Cannot set '{key_path}': '{key}' is not a dictionary")

        current = current[key]

    final_key = keys[-1]
    if delete:
        if final_key not in current:
            raise ConfigPathError(f"Cannot delete '{key_path}': key does not exist")
        del current[final_key]
        return config, True

    current[final_key] = value
    return config, True


def extract_directives(
    config_dict: Any,
) -> Tuple[List[str], Dict[str, Any], List[str], Dict[str, Any]]:
    """Extract include/override/remove directives from a loaded file.

    Parameters
    ----------
    config_dict : Any
        Loaded YAML configuration

    Returns
    -------
    Tuple[List[str], Dict[str, Any], List[str], Dict[str, Any]]
        (includes, overrides, removals, cleaned_config)
    """
    if not isinstance(config_dict, dict):
        return [], {}, [], config_dict

    includes, overrides, removals, cleaned = [], {}, [], {}
    for key, value in config_dict.items():
        if key == "include":
            includes.extend([value] if isinstance(value, str) else value)
        elif key == "override":
            if not isinstance(value, dict):
                raise ConfigError(f"'override' must be a dictionary, got {type(value)}")
            overrides = value
        elif key == "remove":
            removals.extend([value] if isinstance(value, str) else value)
        else:
            cleaned[key] = value

    return includes, overrides, removals, cleaned
