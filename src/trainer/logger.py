"""
W&B logging helper for CycleGAN training.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import torch
import wandb


def to_wandb_image(image: torch.Tensor, caption: Optional[str] = None) -> "wandb.Image":
    """Convert an (H, W, C) or (1, H, W, C) tensor in [-1, 1] to a wandb.Image."""
    if image.dim() == 4:
        image = image[0]
    array = image.detach().float().cpu().numpy()
    array = ((np.clip(array, -1.0, 1.0) + 1.0) * 127.5).astype(np.uint8)
    return wandb.Image(array, caption=caption)


class SampleLogger:
    """Step-aware W&B logger: metrics every log_interval, samples every sample_log_period."""

    def __init__(
        self,
        run: Optional["wandb.sdk.wandb_run.Run"],
        log_interval: int = 1,
        sample_log_period: int = 20,
    ):
        self.run = run
        self.log_interval = max(1, log_interval)
        self.sample_log_period = max(1, sample_log_period)

    @classmethod
    def init(
        cls,
        project: str,
        logdir: str,
        sample_log_period: int,
        mode: str = 'disabled',
        config: Optional[Dict[str, Any]] = None,
    ) -> 'SampleLogger':
        """Start a W&B run writing under logdir."""
        Path(logdir).mkdir(parents=True, exist_ok=True)
        run = wandb.init(project=project, dir=logdir, mode=mode, config=config)
        return cls(run, sample_log_period=sample_log_period)

    def should_log_sample(self, step: int) -> bool:
        return self.run is not None and step % self.sample_log_period == 0

    def log_metrics(self, metrics: Dict[str, Any], step: int) -> None:
        if self.run is None:
            return
        if step % self.log_interval != 0:
            return
        self.run.log(metrics, step=step)

    def log_images(self, images: Dict[str, torch.Tensor], step: int) -> bool:
        if not self.should_log_sample(step):
            return False
        self.run.log({name: to_wandb_image(image, caption=name) for name, image in images.items()}, step=step)
        return True

    def finish(self) -> None:
        if self.run is not None:
            self.run.finish()
            self.run = None
