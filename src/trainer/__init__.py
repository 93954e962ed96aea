"""
Trainer module for CycleGAN.

Channels-last generator building blocks plus the configuration surface and
logging helpers consumed by an external training loop.
"""

from .options import Options, options_from_cli, resolve_options
from .logger import SampleLogger

__all__ = [
    # Configuration
    "Options",
    "options_from_cli",
    "resolve_options",
    # Logger
    "SampleLogger",
]
