"""
YAML configuration loading with `_base_` inheritance.

A config may name one base file or a list of them in `_base_`; paths are
relative to the config that names them. Later bases override earlier ones
and the config itself overrides all of its bases.
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dicts, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML config, resolving `_base_` inheritance.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: the file (or one of its bases) does not exist
        ValueError: the top level of the file is not a mapping
    """
    config_path = Path(config_path).expanduser()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config {config_path} must be a mapping, got {type(config).__name__}")

    bases = config.pop('_base_', [])
    if isinstance(bases, str):
        bases = [bases]

    merged: Dict[str, Any] = {}
    for base in bases:
        merged = deep_merge(merged, load_config(config_path.parent / base))
    return deep_merge(merged, config)
