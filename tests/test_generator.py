import pytest
import torch

from src.trainer.models import ResNetBlock, ResNetGenerator, build_generator
from src.trainer.models.layers import Identity, LayerNorm2D, LeakyReLU, ShapeMismatchError


def _small_generator(seed: int = 0, **kwargs) -> ResNetGenerator:
    params = dict(ngf=4, n_blocks=2)
    params.update(kwargs)
    return ResNetGenerator(generator=torch.Generator().manual_seed(seed), **params)


def test_output_matches_input_size():
    model = _small_generator()
    x = torch.randn(2, 16, 16, 3, generator=torch.Generator().manual_seed(1))
    out = model(x)
    assert out.shape == (2, 16, 16, 3)
    assert out.abs().max() <= 1.0


def test_output_channels():
    model = _small_generator(input_channels=1, output_channels=2)
    assert model(torch.zeros(1, 8, 8, 1)).shape == (1, 8, 8, 2)


def test_residual_blocks_share_settings():
    model = _small_generator(n_blocks=3, padding_mode='constant', use_dropout=True)
    blocks = list(model.resblocks)
    assert len(blocks) == 3
    for block in blocks:
        assert isinstance(block, ResNetBlock)
        assert block.channels == 16
        assert block.padding_mode.value == 'constant'
        assert block.use_dropout


def test_seeded_construction_is_deterministic():
    x = torch.randn(1, 8, 8, 3, generator=torch.Generator().manual_seed(2))
    a = _small_generator(seed=9).eval()
    b = _small_generator(seed=9).eval()
    assert torch.equal(a(x), b(x))


def test_trace_forward_records_every_layer():
    model = _small_generator()
    x = torch.zeros(1, 16, 16, 3)
    out, trace = model.trace_forward(x)

    assert len(trace) == 4 + 6 + 2 + 6 + 3
    assert trace[0]['in_shape'] == (1, 16, 16, 3)
    assert trace[-1]['out_shape'] == tuple(out.shape)
    resblocks = [entry for entry in trace if entry['stage'] == 'resblocks']
    assert [entry['in_shape'] for entry in resblocks] == [(1, 4, 4, 16)] * 2
    assert torch.allclose(out, model(x))


def test_build_generator_from_config():
    model = build_generator(
        {'ngf': 2, 'n_blocks': 1, 'norm': 'layer', 'padding_mode': 'constant'},
        generator=torch.Generator().manual_seed(0),
    )
    assert len(model.resblocks) == 1
    assert isinstance(model.resblocks[0].norm1, LayerNorm2D)
    assert model(torch.zeros(1, 8, 8, 3)).shape == (1, 8, 8, 3)


def test_build_generator_rejects_unknown_padding_mode():
    with pytest.raises(ValueError):
        build_generator({'ngf': 2, 'n_blocks': 1, 'padding_mode': 'wrap'})


def test_gradients_reach_generator_parameters():
    model = _small_generator(n_blocks=1)
    out = model(torch.randn(1, 8, 8, 3, generator=torch.Generator().manual_seed(4)))
    (out ** 2).mean().backward()
    assert all(p.grad is not None for p in model.parameters())


def test_activation_is_configurable():
    model = build_generator(
        {'ngf': 2, 'n_blocks': 1, 'activation': 'leaky_relu', 'output_activation': 'none'},
        generator=torch.Generator().manual_seed(0),
    )
    assert isinstance(model.stem[3], LeakyReLU)
    assert isinstance(model.head[2], Identity)
    assert model(torch.zeros(1, 8, 8, 3)).shape == (1, 8, 8, 3)


def test_unknown_activation():
    with pytest.raises(ValueError, match="Unknown activation"):
        build_generator({'ngf': 2, 'n_blocks': 1, 'activation': 'swish'})


def test_generator_reflect_stem_rejects_tiny_images():
    with pytest.raises(ShapeMismatchError, match="ZeroPad2D"):
        _small_generator()(torch.zeros(1, 3, 3, 3))
