from pathlib import Path

import pytest

from src.trainer.options import Options
from src.utils.config import deep_merge, load_config

CONFIG_DIR = Path(__file__).resolve().parents[1] / 'config' / 'trainer'


def test_deep_merge_overrides_nested_keys():
    base = {'a': 1, 'nested': {'x': 1, 'y': 2}}
    merged = deep_merge(base, {'nested': {'y': 3}, 'b': 2})
    assert merged == {'a': 1, 'b': 2, 'nested': {'x': 1, 'y': 3}}
    assert base['nested']['y'] == 2


def test_load_config_inherits_base(tmp_path):
    (tmp_path / 'base.yaml').write_text("options:\n  epochs: 10\n  gpu_index: 1\ngenerator:\n  ngf: 64\n")
    (tmp_path / 'child.yaml').write_text("_base_: base.yaml\noptions:\n  epochs: 20\n")

    cfg = load_config(tmp_path / 'child.yaml')
    assert cfg == {'options': {'epochs': 20, 'gpu_index': 1}, 'generator': {'ngf': 64}}


def test_load_config_multiple_bases(tmp_path):
    (tmp_path / 'a.yaml').write_text("x: 1\ny: 1\n")
    (tmp_path / 'b.yaml').write_text("y: 2\n")
    (tmp_path / 'c.yaml').write_text("_base_: [a.yaml, b.yaml]\nz: 3\n")
    assert load_config(tmp_path / 'c.yaml') == {'x': 1, 'y': 2, 'z': 3}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / 'missing.yaml')


def test_load_config_requires_mapping(tmp_path):
    path = tmp_path / 'list.yaml'
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)


def test_shipped_configs_load():
    cfg = load_config(CONFIG_DIR / 'horse2zebra.yaml')
    options = Options.from_config(cfg)
    assert options.epochs == 200
    assert options.dataset_path == './dataset/horse2zebra'
    assert options.sample_log_period == 20
    assert cfg['generator']['padding_mode'] == 'reflect'

    assert load_config(CONFIG_DIR / 'resnet_6blocks_128.yaml')['generator']['n_blocks'] == 6


class TestOptions:
    def test_defaults(self):
        options = Options()
        assert options.to_dict() == {
            'dataset_path': './dataset',
            'gpu_index': 0,
            'epochs': 50,
            'tensorboard_logdir': '/tmp/tensorboardx',
            'sample_log_period': 20,
        }

    def test_from_empty_config(self):
        assert Options.from_config({}) == Options()

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown options"):
            Options.from_config({'options': {'learning_rate': 0.1}})

    @pytest.mark.parametrize("field, value", [
        ('gpu_index', -1),
        ('epochs', 0),
        ('sample_log_period', 0),
    ])
    def test_validate(self, field, value):
        with pytest.raises(ValueError, match=field):
            Options(**{field: value}).validate()


def test_from_config_without_validation():
    options = Options.from_config({'options': {'epochs': 0}}, validate=False)
    assert options.epochs == 0
    with pytest.raises(ValueError, match="epochs"):
        options.validate()
