"""
Generator architectures for CycleGAN.
"""

from .generator import (
    ResNetGenerator,
    build_generator,
)

__all__ = [
    "ResNetGenerator",
    "build_generator",
]
