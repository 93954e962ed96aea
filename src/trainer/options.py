"""
Training configuration surface.

Options can come from defaults, the `options:` section of a YAML config,
or command-line flags, in increasing order of precedence.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, Optional

import click
from click.core import ParameterSource


@dataclass
class Options:
    """Hyperparameters consumed by the training driver."""

    dataset_path: str = './dataset'
    gpu_index: int = 0
    epochs: int = 50
    tensorboard_logdir: str = '/tmp/tensorboardx'
    sample_log_period: int = 20

    def validate(self) -> 'Options':
        if self.gpu_index < 0:
            raise ValueError(f"gpu_index must be non-negative, got {self.gpu_index}")
        if self.epochs < 1:
            raise ValueError(f"epochs must be at least 1, got {self.epochs}")
        if self.sample_log_period < 1:
            raise ValueError(f"sample_log_period must be at least 1, got {self.sample_log_period}")
        return self

    @classmethod
    def from_config(cls, config: Dict[str, Any], validate: bool = True) -> 'Options':
        """
        Build options from the `options:` section of a loaded config.

        With validate=False the values are left unchecked so that command
        line overrides can still replace them.
        """
        section = config.get('options', {}) or {}
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown options: {sorted(unknown)}. Available: {sorted(known)}")
        options = cls(**section)
        return options.validate() if validate else options

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def options_from_cli(func: Callable) -> Callable:
    """Decorator adding one click option per Options field."""
    defaults = Options()
    decorators = [
        click.option("--dataset-path", default=defaults.dataset_path, type=str,
                     help="Path to the dataset folder"),
        click.option("--gpu-index", default=defaults.gpu_index, type=click.IntRange(min=0),
                     help="GPU Index"),
        click.option("--epochs", default=defaults.epochs, type=click.IntRange(min=1),
                     help="Number of epochs"),
        click.option("--tensorboard-logdir", default=defaults.tensorboard_logdir, type=str,
                     help="TensorBoard logdir path"),
        click.option("--sample-log-period", default=defaults.sample_log_period, type=click.IntRange(min=1),
                     help="Number of steps to log a sample image into tensorboard"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def resolve_options(ctx: click.Context, config: Optional[Dict[str, Any]] = None) -> Options:
    """
    Merge CLI values over config values.

    A flag only overrides the config when it was given explicitly on the
    command line (or through the environment).
    """
    options = Options.from_config(config or {}, validate=False)
    for field in fields(Options):
        source = ctx.get_parameter_source(field.name)
        if source in (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT):
            setattr(options, field.name, ctx.params[field.name])
    return options.validate()
