"""
Channels-last (B, H, W, C) layers for the CycleGAN generator.

Every layer here takes and returns NHWC tensors. Layers that wrap
channels-first PyTorch kernels permute on the way in and out.
"""

from typing import Callable, Iterable, Optional, Sequence, Tuple, Union

import torch
import torch.nn as nn
import torch.nn.functional as F


Padding = Tuple[Tuple[int, int], Tuple[int, int]]
Initializer = Callable[[torch.Tensor, Optional[torch.Generator]], torch.Tensor]


class ShapeMismatchError(ValueError):
    """Input tensor does not match the shape a layer was built for."""

    def __init__(self, layer: str, expected: Sequence[Union[int, str, None]], actual: Sequence[int]):
        self.layer = layer
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        shown = ", ".join('?' if dim is None else str(dim) for dim in self.expected)
        super().__init__(f"{layer}: expected input shape ({shown}), got {self.actual}")


def check_input(layer: nn.Module, x: torch.Tensor, channels: Optional[int] = None) -> None:
    """Raise ShapeMismatchError unless x is rank 4 with the given channel count."""
    expected = (None, None, None, channels)
    if x.dim() != 4:
        raise ShapeMismatchError(layer.__class__.__name__, expected, x.shape)
    if channels is not None and x.shape[-1] != channels:
        raise ShapeMismatchError(layer.__class__.__name__, expected, x.shape)


def to_channels_first(x: torch.Tensor) -> torch.Tensor:
    return x.permute(0, 3, 1, 2)


def to_channels_last(x: torch.Tensor) -> torch.Tensor:
    return x.permute(0, 2, 3, 1)


# =============================================================================
# Initializers
# =============================================================================

def normal_init(std: float = 0.02) -> Initializer:
    """Zero-mean normal initializer, the CycleGAN default for conv filters."""
    def init(tensor: torch.Tensor, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        return nn.init.normal_(tensor, 0.0, std, generator=generator)
    return init


def zeros_init(tensor: torch.Tensor, generator: Optional[torch.Generator] = None) -> torch.Tensor:
    return nn.init.zeros_(tensor)


# =============================================================================
# Parameterless Layers
# =============================================================================

class Identity(nn.Module):
    """Returns its input."""

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x


class LeakyReLU(nn.Module):
    """Leaky ReLU with a fixed negative slope (0.2 by default)."""

    def __init__(self, negative_slope: float = 0.2):
        super().__init__()
        self.negative_slope = negative_slope

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.leaky_relu(x, self.negative_slope)


class ReLU(nn.Module):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.relu(x)


class Tanh(nn.Module):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return torch.tanh(x)


class Dropout(nn.Module):
    """
    Inverted dropout driven by an explicit random generator.

    Zeroes each element with probability p and rescales the rest by
    1 / (1 - p) in training mode. In eval mode it returns its input.
    """

    def __init__(self, p: float = 0.5, generator: Optional[torch.Generator] = None):
        super().__init__()
        if not 0.0 <= p < 1.0:
            raise ValueError(f"Dropout probability must be in [0, 1), got {p}")
        self.p = p
        self.generator = generator

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if not self.training or self.p == 0.0:
            return x
        keep = 1.0 - self.p
        if self.generator is None:
            mask = torch.empty_like(x).bernoulli_(keep)
        else:
            # The mask is drawn where the generator lives, then moved to x.
            mask = torch.empty(x.shape, dtype=x.dtype, device=self.generator.device)
            mask = mask.bernoulli_(keep, generator=self.generator).to(x.device)
        return x * mask / keep


# =============================================================================
# Normalization
# =============================================================================

class InstanceNorm2D(nn.Module):
    """
    Instance normalization over a mini-batch of NHWC images.

    Mean and (biased) variance are taken per sample and per channel over the
    spatial axes, then a learnable per-channel affine transform is applied.
    No running statistics are kept.

    Reference: Instance Normalization, https://arxiv.org/abs/1607.08022
    """

    def __init__(self, num_features: int, eps: float = 1e-5):
        super().__init__()
        if num_features <= 0:
            raise ValueError(f"num_features must be positive, got {num_features}")
        if eps <= 0:
            raise ValueError(f"eps must be positive, got {eps}")
        self.num_features = num_features
        self.eps = eps
        self.scale = nn.Parameter(torch.ones(num_features))
        self.offset = nn.Parameter(torch.zeros(num_features))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x, self.num_features)
        mean = x.mean(dim=(1, 2), keepdim=True)
        variance = x.var(dim=(1, 2), correction=0, keepdim=True)
        norm = (x - mean) * torch.rsqrt(variance + self.eps)
        return norm * self.scale + self.offset


class LayerNorm2D(nn.Module):
    """Layer normalization over (H, W, C) of each NHWC sample, per-channel affine."""

    def __init__(self, num_features: int, eps: float = 1e-5):
        super().__init__()
        if num_features <= 0:
            raise ValueError(f"num_features must be positive, got {num_features}")
        if eps <= 0:
            raise ValueError(f"eps must be positive, got {eps}")
        self.num_features = num_features
        self.eps = eps
        self.scale = nn.Parameter(torch.ones(num_features))
        self.offset = nn.Parameter(torch.zeros(num_features))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x, self.num_features)
        mean = x.mean(dim=(1, 2, 3), keepdim=True)
        variance = x.var(dim=(1, 2, 3), correction=0, keepdim=True)
        norm = (x - mean) * torch.rsqrt(variance + self.eps)
        return norm * self.scale + self.offset


# =============================================================================
# Padding
# =============================================================================

PADDING_MODES = ('constant', 'reflect')


def normalize_padding(padding: Union[int, Sequence]) -> Padding:
    """Turn an int, (top, bottom, left, right) or ((top, bottom), (left, right)) into pairs."""
    if isinstance(padding, int):
        pairs = ((padding, padding), (padding, padding))
    elif len(padding) == 4:
        top, bottom, left, right = padding
        pairs = ((top, bottom), (left, right))
    elif len(padding) == 2 and all(isinstance(pair, (tuple, list)) and len(pair) == 2 for pair in padding):
        pairs = (tuple(padding[0]), tuple(padding[1]))
    else:
        raise ValueError(f"Unsupported padding specification: {padding}")

    for amount in (*pairs[0], *pairs[1]):
        if not isinstance(amount, int) or amount < 0:
            raise ValueError(f"Padding amounts must be non-negative integers, got {padding}")
    return pairs


def pad2d(x: torch.Tensor, padding: Padding, mode: str = 'constant', layer: str = 'pad2d') -> torch.Tensor:
    """
    Pad the H and W axes of an NHWC tensor.

    Reflect padding needs every pad amount to be smaller than its axis; a
    smaller input raises ShapeMismatchError naming `layer`.
    """
    (top, bottom), (left, right) = padding
    if mode == 'constant':
        # F.pad runs from the last axis backwards: C, W, H.
        return F.pad(x, (0, 0, left, right, top, bottom), mode='constant', value=0.0)
    if mode == 'reflect':
        min_height, min_width = max(top, bottom) + 1, max(left, right) + 1
        if x.shape[1] < min_height or x.shape[2] < min_width:
            expected = (None, f">={min_height}", f">={min_width}", None)
            raise ShapeMismatchError(layer, expected, x.shape)
        padded = F.pad(to_channels_first(x), (left, right, top, bottom), mode='reflect')
        return to_channels_last(padded)
    raise ValueError(f"Unknown padding mode: {mode}. Available: {list(PADDING_MODES)}")


class ZeroPad2D(nn.Module):
    """
    Pads the spatial axes of an NHWC mini-batch.

    Zeros by default; mode='reflect' mirrors the border instead.
    """

    def __init__(self, padding: Union[int, Sequence] = 1, mode: str = 'constant'):
        super().__init__()
        if mode not in PADDING_MODES:
            raise ValueError(f"Unknown padding mode: {mode}. Available: {list(PADDING_MODES)}")
        self._padding = normalize_padding(padding)
        self._mode = mode

    @property
    def padding(self) -> Padding:
        return self._padding

    @property
    def mode(self) -> str:
        return self._mode

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x)
        return pad2d(x, self._padding, self._mode, layer=self.__class__.__name__)

    def extra_repr(self) -> str:
        return f"padding={self._padding}, mode={self._mode}"


# =============================================================================
# Convolutions
# =============================================================================

def conv_output_size(size: int, kernel_size: int, stride: int = 1, padding: Tuple[int, int] = (0, 0)) -> int:
    """Output length of a strided convolution along one padded axis."""
    return (size + padding[0] + padding[1] - kernel_size) // stride + 1


class Conv2D(nn.Conv2d):
    """
    NHWC 2D convolution without implicit padding.

    Filters and biases are filled by the given initializers; filters default
    to N(0, 0.02) and biases to zeros.
    """

    def __init__(
        self,
        in_channels: int,
        out_channels: int,
        kernel_size: int,
        stride: int = 1,
        filter_init: Optional[Initializer] = None,
        bias_init: Optional[Initializer] = None,
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__(in_channels, out_channels, kernel_size, stride=stride, padding=0, bias=True)
        (filter_init or normal_init())(self.weight.data, generator)
        (bias_init or zeros_init)(self.bias.data, generator)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x, self.in_channels)
        return to_channels_last(super().forward(to_channels_first(x)))


class ConvTranspose2D(nn.ConvTranspose2d):
    """NHWC transposed convolution used for upsampling."""

    def __init__(
        self,
        in_channels: int,
        out_channels: int,
        kernel_size: int = 3,
        stride: int = 2,
        padding: int = 1,
        output_padding: int = 1,
        filter_init: Optional[Initializer] = None,
        bias_init: Optional[Initializer] = None,
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__(
            in_channels, out_channels, kernel_size,
            stride=stride, padding=padding, output_padding=output_padding, bias=True,
        )
        (filter_init or normal_init())(self.weight.data, generator)
        (bias_init or zeros_init)(self.bias.data, generator)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x, self.in_channels)
        return to_channels_last(super().forward(to_channels_first(x)))


class ConvLayer(nn.Module):
    """
    Zero padding followed by a strided 2D convolution.

    Padding defaults to kernel_size // 2 on every side.
    """

    def __init__(
        self,
        in_channels: int,
        out_channels: int,
        kernel_size: int,
        stride: int = 1,
        padding: Optional[int] = None,
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__()
        if padding is None:
            padding = kernel_size // 2
        self.pad = ZeroPad2D(padding)
        self.conv2d = Conv2D(in_channels, out_channels, kernel_size, stride=stride, generator=generator)

    @property
    def in_channels(self) -> int:
        return self.conv2d.in_channels

    @property
    def out_channels(self) -> int:
        return self.conv2d.out_channels

    def output_shape(self, input_shape: Iterable[int]) -> Tuple[int, int, int, int]:
        batch, height, width, _ = input_shape
        kernel, stride = self.conv2d.kernel_size[0], self.conv2d.stride[0]
        (top, bottom), (left, right) = self.pad.padding
        return (
            batch,
            conv_output_size(height, kernel, stride, (top, bottom)),
            conv_output_size(width, kernel, stride, (left, right)),
            self.out_channels,
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        check_input(self, x, self.in_channels)
        return self.conv2d(self.pad(x))
