"""
Model building blocks for CycleGAN.

Channels-last (B, H, W, C) layers, the residual block and the ResNet generator.
"""

from .layers import (
    Conv2D,
    ConvLayer,
    ConvTranspose2D,
    Dropout,
    Identity,
    InstanceNorm2D,
    LayerNorm2D,
    LeakyReLU,
    ShapeMismatchError,
    ZeroPad2D,
    conv_output_size,
)
from .blocks import (
    ComponentRegistry,
    FeatureChannelInitializable,
    PaddingMode,
    ResNetBlock,
    Sequential,
    sequenced,
)
from .generator import (
    ResNetGenerator,
    build_generator,
)

__all__ = [
    # Layers
    "Conv2D",
    "ConvLayer",
    "ConvTranspose2D",
    "Dropout",
    "Identity",
    "InstanceNorm2D",
    "LayerNorm2D",
    "LeakyReLU",
    "ShapeMismatchError",
    "ZeroPad2D",
    "conv_output_size",
    # Blocks
    "ComponentRegistry",
    "FeatureChannelInitializable",
    "PaddingMode",
    "ResNetBlock",
    "Sequential",
    "sequenced",
    # Generator
    "ResNetGenerator",
    "build_generator",
]
