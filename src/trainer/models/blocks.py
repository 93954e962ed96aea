"""
Composite building blocks for the CycleGAN generator.

Provides the normalization registry, the residual block and sequential
composition of layers.
"""

from enum import Enum
from functools import reduce
from typing import Dict, List, Optional, Protocol, Type, Union

import torch
import torch.nn as nn
import torch.nn.functional as F

from .layers import (
    Conv2D,
    Dropout,
    Identity,
    Initializer,
    InstanceNorm2D,
    LayerNorm2D,
    LeakyReLU,
    ReLU,
    Tanh,
    check_input,
    normal_init,
    pad2d,
    zeros_init,
)


# =============================================================================
# Registry Pattern for Components
# =============================================================================

class ComponentRegistry:
    """Registry for dynamically creating components by name."""

    _registries: Dict[str, Dict[str, Type]] = {
        'norm': {},
        'activation': {},
    }

    @classmethod
    def register(cls, category: str, name: str, component_cls: Optional[Type] = None):
        """Register a component, directly or as a decorator."""
        def decorator(component_cls: Type):
            cls._registries[category][name] = component_cls
            return component_cls
        if component_cls is not None:
            return decorator(component_cls)
        return decorator

    @classmethod
    def get(cls, category: str, name: str) -> Type:
        """Get a component class by category and name."""
        if category not in cls._registries:
            raise ValueError(f"Unknown category: {category}")
        if name not in cls._registries[category]:
            raise ValueError(f"Unknown {category}: {name}. Available: {list(cls._registries[category].keys())}")
        return cls._registries[category][name]

    @classmethod
    def list_available(cls, category: str) -> List[str]:
        """List available components in a category."""
        return list(cls._registries.get(category, {}).keys())


ComponentRegistry.register('norm', 'instance', InstanceNorm2D)
ComponentRegistry.register('norm', 'layer', LayerNorm2D)

ComponentRegistry.register('activation', 'relu', ReLU)
ComponentRegistry.register('activation', 'leaky_relu', LeakyReLU)
ComponentRegistry.register('activation', 'tanh', Tanh)
ComponentRegistry.register('activation', 'none', Identity)


class FeatureChannelInitializable(Protocol):
    """A normalization layer type built from the size of the channel axis."""

    def __call__(self, num_features: int) -> nn.Module:
        ...


NormType = Union[str, FeatureChannelInitializable]


def get_norm_layer(norm: NormType, num_features: int) -> nn.Module:
    """Build a normalization layer from a registry name or a layer type."""
    norm_cls = ComponentRegistry.get('norm', norm) if isinstance(norm, str) else norm
    return norm_cls(num_features)


def get_activation(activation_type: str) -> nn.Module:
    """Factory function for activation layers."""
    return ComponentRegistry.get('activation', activation_type)()


class PaddingMode(str, Enum):
    CONSTANT = 'constant'
    REFLECT = 'reflect'


# =============================================================================
# Sequential Composition
# =============================================================================

def sequenced(x: torch.Tensor, *layers: nn.Module) -> torch.Tensor:
    """Feed x through layers left to right."""
    return reduce(lambda h, layer: layer(h), layers, x)


class Sequential(nn.ModuleList):
    """
    Ordered layers applied as a single layer.

    Each layer's output is the next layer's input; with no layers the input
    comes back unchanged.
    """

    def __init__(self, *layers: nn.Module):
        if len(layers) == 1 and not isinstance(layers[0], nn.Module):
            layers = tuple(layers[0])
        super().__init__(layers)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return sequenced(x, *self)


# =============================================================================
# Residual Block
# =============================================================================

class ResNetBlock(nn.Module):
    """
    CycleGAN residual block.

    x -> Pad -> Conv3x3 -> Norm -> ReLU -> [Dropout] -> Pad -> Conv3x3 -> Norm -> (+x)

    The normalization layer is any type constructible from a channel count
    (a class or a registry name). Padding mode is fixed per block.
    """

    def __init__(
        self,
        channels: int,
        padding_mode: Union[PaddingMode, str],
        normalization: NormType = InstanceNorm2D,
        use_dropout: bool = False,
        filter_init: Optional[Initializer] = None,
        bias_init: Optional[Initializer] = None,
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__()

        if channels <= 0:
            raise ValueError(f"channels must be positive, got {channels}")

        filter_init = filter_init or normal_init(0.02)
        bias_init = bias_init or zeros_init

        self.channels = channels
        self.padding_mode = PaddingMode(padding_mode)
        self.use_dropout = use_dropout

        self.conv1 = Conv2D(channels, channels, 3, filter_init=filter_init, bias_init=bias_init, generator=generator)
        self.norm1 = get_norm_layer(normalization, channels)
        self.conv2 = Conv2D(channels, channels, 3, filter_init=filter_init, bias_init=bias_init, generator=generator)
        self.norm2 = get_norm_layer(normalization, channels)

        self.dropout = Dropout(0.5, generator=generator)

    def _pad(self, x: torch.Tensor) -> torch.Tensor:
        return pad2d(x, ((1, 1), (1, 1)), self.padding_mode.value, layer=self.__class__.__name__)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x, self.channels)

        h = sequenced(self._pad(x), self.conv1, self.norm1)
        h = F.relu(h)

        if self.use_dropout:
            h = self.dropout(h)

        h = sequenced(self._pad(h), self.conv2, self.norm2)
        return x + h

    def extra_repr(self) -> str:
        return f"channels={self.channels}, padding_mode={self.padding_mode.value}, use_dropout={self.use_dropout}"
