"""Main configuration loading functions.

This module provides the entry points used to load a configuration:
- load_config(): Load from a YAML string
- load_config_file(): Load from a file path

Configuration language
----------------------
Include semantics (merged depth-first, in order, before the file body)::

    include: base.yaml
    include: [base.yaml, selection_tight.yaml]

Override semantics (applied after all includes and the body are merged)::

    override:
      selection.min_pt: 0.5
      builder.refit: false

Removal semantics::

    remove: [io.writer]
"""

import os
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigCycleError, ConfigIncludeError
from .operations import deep_merge, extract_directives, parse_value, set_nested_value

__all__ = ["load_config", "load_config_file", "resolve_config_path"]

# Environment variable listing additional configuration search directories
CONFIG_PATH_ENV = "MUSKIM_CONFIG_PATH"


def resolve_config_path(
    filename: str, current_dir: str, search_paths: Optional[List[str]] = None
) -> str:
    """Resolve a configuration file path.

    Resolution order:
    1. If absolute path, return as-is
    2. Try relative to current_dir (with and without .yaml/.yml extension)
    3. Search through the MUSKIM_CONFIG_PATH directories

    Parameters
    ----------
    filename : str
        Config filename or path to resolve
    current_dir : str
        Directory of the config file doing the including
    search_paths : List[str], optional
        List of search paths (defaults to MUSKIM_CONFIG_PATH env var)

    Returns
    -------
    str
        Resolved absolute path

    Raises
    ------
    ConfigIncludeError
        If file cannot be found in any location
    """
    if os.path.isabs(filename):
        if os.path.isfile(filename):
            return filename
        raise ConfigIncludeError(f"Absolute path not found: {filename}")

    if search_paths is None:
        env = os.environ.get(CONFIG_PATH_ENV, "")
        search_paths = [p for p in env.split(os.pathsep) if p]

    for directory in [current_dir, *search_paths]:
        for ext in ("", ".yaml", ".yml"):
            candidate = os.path.join(directory, filename + ext)
            if os.path.isfile(candidate):
                return os.path.abspath(candidate)

    raise ConfigIncludeError(
        f"Configuration file not found: {filename} (searched {current_dir} "
        f"and {search_paths})"
    )


def _load_recursive(
    cfg_path: Optional[str] = None,
    config_string: Optional[str] = None,
    root_dir: Optional[str] = None,
    include_stack: Optional[List[str]] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any], List[str]]:
    """Recursively load a configuration with cycle detection.

    Parameters
    ----------
    cfg_path : str, optional
        Path to configuration file (mutually exclusive with config_string)
    config_string : str, optional
        YAML configuration string (mutually exclusive with cfg_path)
    root_dir : str, optional
        Root directory for resolving relative include paths
    include_stack : List[str], optional
        Stack of currently-loading files (for cycle detection)

    Returns
    -------
    Tuple[Dict[str, Any], Dict[str, Any], List[str]]
        (config content, override directives, removal directives)
    """
    if (cfg_path is None) == (config_string is None):
        raise ValueError("Must provide exactly one of cfg_path or config_string")

    include_stack = include_stack or []
    if cfg_path is not None:
        cfg_path = os.path.abspath(cfg_path)
        if cfg_path in include_stack:
            raise ConfigCycleError(include_stack + [cfg_path])
        include_stack = include_stack + [cfg_path]
        root_dir = root_dir or os.path.dirname(cfg_path)
    else:
        root_dir = root_dir or os.getcwd()

    try:
        if cfg_path is not None:
            with open(cfg_path, "r", encoding="utf-8") as cfg_file:
                main_config = yaml.safe_load(cfg_file)
        else:
            main_config = yaml.safe_load(config_string)
    except FileNotFoundError as exc:
        raise ConfigIncludeError(f"Configuration file not found: {cfg_path}") from exc
    except yaml.YAMLError as exc:
        source = cfg_path or "<string>"
        raise ConfigIncludeError(f"Error loading {source}: {exc}") from exc

    if main_config is None:
        return {}, {}, []

    includes, overrides, removals, cleaned = extract_directives(main_config)

    config = {}
    for include_file in includes:
        include_path = resolve_config_path(include_file, root_dir)
        included, included_overrides, included_removals = _load_recursive(
            cfg_path=include_path, include_stack=include_stack
        )
        config = deep_merge(config, included)
        overrides = {**included_overrides, **overrides}
        removals = included_removals + removals

    config = deep_merge(config, cleaned)

    return config, overrides, removals


def _finalize(config, overrides, removals):
    """Apply the accumulated override and removal directives."""
    for key_path, value in overrides.items():
        config, _ = set_nested_value(
            config, key_path, parse_value(value), only_if_exists=True
        )

    for key_path in removals:
        config, _ = set_nested_value(config, key_path, None, delete=True)

    return config


def load_config(config_str: str, root_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load a configuration from a YAML string.

    Parameters
    ----------
    config_str : str
        YAML configuration string
    root_dir : str, optional
        Root directory for resolving relative include paths. Defaults to
        the current working directory.

    Returns
    -------
    Dict[str, Any]
        Loaded and merged configuration
    """
    return _finalize(*_load_recursive(config_string=config_str, root_dir=root_dir))


def load_config_file(cfg_path: str) -> Dict[str, Any]:
    """Load a configuration from a file.

    The file's directory is used as the root for include resolution.

    Parameters
    ----------
    cfg_path : str
        Path to configuration file

    Returns
    -------
    Dict[str, Any]
        Loaded and merged configuration
    """
    return _finalize(*_load_recursive(cfg_path=cfg_path))
