"""Shared utilities for configuration loading."""

from src.utils.config import load_config, deep_merge

__all__ = [
    'load_config',
    'deep_merge',
]
