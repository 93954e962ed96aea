"""
Generator Pipeline Runner

Resolves the training options, builds the CycleGAN generator and traces a
dummy forward pass. The training loop itself lives outside this package.

Usage:
    python -m src.trainer.runner
    python -m src.trainer.runner --config config/trainer/horse2zebra.yaml
    python -m src.trainer.runner --config config/trainer/horse2zebra.yaml --gpu-index 1 --epochs 200
"""

from typing import Any, Dict, Optional

import click
import torch

from src.trainer.logger import SampleLogger
from src.trainer.models.generator import build_generator
from src.trainer.options import options_from_cli, resolve_options
from src.utils.config import load_config


@click.command()
@click.option("--config", "-c", "config_path", default=None, type=str, help="Path to configuration YAML file")
@options_from_cli
@click.option("--image-size", default=None, type=click.IntRange(min=4), help="Override dummy input image size")
@click.option("--seed", default=0, type=int, help="Seed for weight initialization")
@click.option("--wandb-mode", default="disabled", type=click.Choice(["online", "offline", "disabled"]),
              help="W&B run mode")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], image_size: Optional[int], seed: int,
         wandb_mode: str, **_: Any) -> None:
    """Build and trace the CycleGAN generator."""

    cfg: Dict[str, Any] = load_config(config_path) if config_path else {}
    options = resolve_options(ctx, cfg)
    generator_cfg = cfg.get('generator', {})
    image_size = image_size or cfg.get('image_size', 256)

    print("\n=== Pipeline Configuration ===")
    print(f"  config: {config_path}")
    for key, value in options.to_dict().items():
        print(f"  {key}: {value}")

    device = select_device(options.gpu_index)
    print(f"  Device: {device}")

    print("\n=== Step 1: Building Generator ===")
    rng = torch.Generator().manual_seed(seed)
    model = build_generator(generator_cfg, generator=rng).to(device)
    model.eval()
    print(f"  Generator parameters: {_count_parameters(model):,}")

    print("\n=== Step 2: Tracing Forward Pass ===")
    channels = generator_cfg.get('input_channels', 3)
    dummy = torch.zeros(1, image_size, image_size, channels, device=device)
    output, trace = model.trace_forward(dummy)
    for entry in trace:
        print(f"  {entry['stage']}[{entry['idx']}] {entry['block']}: {entry['in_shape']} -> {entry['out_shape']}")

    print("\n=== Step 3: Logging Sample ===")
    logger = SampleLogger.init(
        project=cfg.get('wandb', {}).get('project_name', 'cyclegan'),
        logdir=options.tensorboard_logdir,
        sample_log_period=options.sample_log_period,
        mode=wandb_mode,
        config={**cfg, 'options': options.to_dict()},
    )
    logged = logger.log_images({'sample': output}, step=0)
    logger.finish()
    print(f"  Sample logged: {logged}")

    print("\n=== Pipeline Completed Successfully ===")


def select_device(gpu_index: int) -> torch.device:
    """CUDA device at gpu_index when available, CPU otherwise."""
    if torch.cuda.is_available() and gpu_index < torch.cuda.device_count():
        return torch.device(f'cuda:{gpu_index}')
    return torch.device('cpu')


def _count_parameters(model: torch.nn.Module) -> int:
    """Count trainable parameters in model."""
    return sum(p.numel() for p in model.parameters() if p.requires_grad)


if __name__ == '__main__':
    main()
