import logging

import pytest

from padengine.core.config import EngineConfig, KEY_LAYOUT, PLAYBACK_RATES
from padengine.core.errors import ConfigError


def test_defaults():
    config = EngineConfig()
    assert config.pad_count == 16
    assert config.tick_interval == 0.05
    assert config.epsilon == 0.05
    assert config.resume_threshold == 0.2
    assert config.midi_start_note == 36
    assert config.key_layout == KEY_LAYOUT
    assert config.playback_rates == PLAYBACK_RATES
    assert config.min_rate == 0.25
    assert config.max_rate == 2.0


@pytest.mark.parametrize("kwargs", [
    {'pad_count': 0},
    {'tick_interval': 0},
    {'epsilon': -1},
    {'resume_threshold': 0.01},
    {'key_layout': "1234"},
    {'playback_rates': (2.0, 1.0)},
    {'default_volume': 120},
])
def test_invalid_values_raise(kwargs):
    with pytest.raises(ConfigError):
        EngineConfig(**kwargs)


def test_save_load_roundtrip(tmp_path):
    path = tmp_path / "engine.json"
    config = EngineConfig(tick_interval=0.02, midi_start_note=48)
    config.save(str(path))

    loaded = EngineConfig.load(str(path))
    assert loaded == config
    assert isinstance(loaded.playback_rates, tuple)


def test_unknown_keys_are_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        config = EngineConfig.from_dict({'pad_count': 16, 'colour': 'red'})
    assert config.pad_count == 16
    assert "colour" in caplog.text


def test_wrong_types_raise_config_error():
    with pytest.raises(ConfigError):
        EngineConfig.from_dict({'pad_count': "many"})


def test_load_rejects_bad_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        EngineConfig.load(str(path))

    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        EngineConfig.load(str(path))
