"""
ResNet Generator Architecture

The CycleGAN image-to-image generator, assembled from the channels-last
layers and blocks of this package:

    reflect pad 3 -> conv 7x7 -> norm -> relu
    -> 2x (conv 3x3 stride 2 -> norm -> relu)
    -> n_blocks x ResNetBlock
    -> 2x (transposed conv 3x3 stride 2 -> norm -> relu)
    -> reflect pad 3 -> conv 7x7 -> tanh
"""

from typing import Any, Dict, List, Optional, Tuple

import torch
import torch.nn as nn

from ..blocks import (
    NormType,
    PaddingMode,
    ResNetBlock,
    Sequential,
    get_activation,
    get_norm_layer,
    sequenced,
)
from ..layers import ConvLayer, ConvTranspose2D, ZeroPad2D


class ResNetGenerator(nn.Module):
    """
    CycleGAN ResNet generator operating on (B, H, W, C) images.

    H and W must be divisible by 4 for the output to match the input size.
    `activation` names the hidden-layer activation and `output_activation`
    the final one ('none' leaves the output unbounded).
    """

    def __init__(
        self,
        input_channels: int = 3,
        output_channels: int = 3,
        ngf: int = 64,
        n_blocks: int = 9,
        normalization: NormType = 'instance',
        padding_mode: str = 'reflect',
        use_dropout: bool = False,
        activation: str = 'relu',
        output_activation: str = 'tanh',
        generator: Optional[torch.Generator] = None,
    ):
        super().__init__()

        padding_mode = PaddingMode(padding_mode)

        self.stem = Sequential(
            ZeroPad2D(3, mode=padding_mode.value),
            ConvLayer(input_channels, ngf, kernel_size=7, stride=1, padding=0, generator=generator),
            get_norm_layer(normalization, ngf),
            get_activation(activation),
        )

        down: List[nn.Module] = []
        for mult in (1, 2):
            down += [
                ConvLayer(ngf * mult, ngf * mult * 2, kernel_size=3, stride=2, generator=generator),
                get_norm_layer(normalization, ngf * mult * 2),
                get_activation(activation),
            ]
        self.downsample = Sequential(down)

        self.resblocks = Sequential([
            ResNetBlock(
                ngf * 4,
                padding_mode=padding_mode,
                normalization=normalization,
                use_dropout=use_dropout,
                generator=generator,
            )
            for _ in range(n_blocks)
        ])

        up: List[nn.Module] = []
        for mult in (4, 2):
            up += [
                ConvTranspose2D(ngf * mult, ngf * mult // 2, generator=generator),
                get_norm_layer(normalization, ngf * mult // 2),
                get_activation(activation),
            ]
        self.upsample = Sequential(up)

        self.head = Sequential(
            ZeroPad2D(3, mode=padding_mode.value),
            ConvLayer(ngf, output_channels, kernel_size=7, stride=1, padding=0, generator=generator),
            get_activation(output_activation),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return sequenced(x, self.stem, self.downsample, self.resblocks, self.upsample, self.head)

    @torch.no_grad()
    def trace_forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, List[Dict[str, Any]]]:
        """
        Forward pass that records block-by-block shapes.

        Returns:
            output tensor, trace list
        """
        trace: List[Dict[str, Any]] = []
        stages = [
            ('stem', self.stem),
            ('downsample', self.downsample),
            ('resblocks', self.resblocks),
            ('upsample', self.upsample),
            ('head', self.head),
        ]
        for stage, blocks in stages:
            for i, block in enumerate(blocks):
                in_shape = tuple(x.shape)
                x = block(x)
                trace.append({
                    'stage': stage,
                    'idx': i,
                    'block': block.__class__.__name__,
                    'in_shape': in_shape,
                    'out_shape': tuple(x.shape),
                })
        return x, trace


# =============================================================================
# Factory Function
# =============================================================================

def build_generator(config: Dict[str, Any], generator: Optional[torch.Generator] = None) -> ResNetGenerator:
    """Build generator from config."""
    return ResNetGenerator(
        input_channels=config.get('input_channels', 3),
        output_channels=config.get('output_channels', 3),
        ngf=config.get('ngf', 64),
        n_blocks=config.get('n_blocks', 9),
        normalization=config.get('norm', 'instance'),
        padding_mode=config.get('padding_mode', 'reflect'),
        use_dropout=config.get('use_dropout', False),
        activation=config.get('activation', 'relu'),
        output_activation=config.get('output_activation', 'tanh'),
        generator=generator,
    )
