# padengine/core/config.py
"""
EngineConfig - Tunable constants of the pad engine, persisted as JSON.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict, Tuple
import json
import logging

from .errors import ConfigError

logger = logging.getLogger(__name__)


PLAYBACK_RATES: Tuple[float, ...] = (0.25, 0.5, 0.75, 1.0, 1.25, 1.5, 1.75, 2.0)
KEY_LAYOUT = "1234qwerasdfzxcv"


@dataclass
class EngineConfig:
    # Registry
    pad_count: int = 16

    # Timing (seconds)
    tick_interval: float = 0.05
    epsilon: float = 0.05
    resume_threshold: float = 0.2
    full_duration_tolerance: float = 0.05

    # Stack rendering
    z_base: int = 3000
    top_layer_opacity: float = 0.999

    # Input
    midi_start_note: int = 36
    key_layout: str = KEY_LAYOUT
    knob_drag_range_px: float = 200.0
    click_threshold_px: float = 3.0
    dampen_threshold_px: float = 50.0
    dampen_falloff_px: float = 50.0

    # Pad defaults
    default_volume: int = 100
    default_rate: float = 1.0
    playback_rates: Tuple[float, ...] = field(default=PLAYBACK_RATES)

    # Bundled audio backend
    sample_rate: int = 44100
    block_size: int = 512

    def __post_init__(self):
        self.playback_rates = tuple(float(r) for r in self.playback_rates)
        self.validate()

    def validate(self):
        if self.pad_count <= 0:
            raise ConfigError(f"pad_count must be positive, got {self.pad_count}")
        if self.tick_interval <= 0:
            raise ConfigError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.epsilon <= 0:
            raise ConfigError(f"epsilon must be positive, got {self.epsilon}")
        if self.resume_threshold < self.epsilon:
            raise ConfigError("resume_threshold must not be smaller than epsilon")
        if len(self.key_layout) != self.pad_count:
            raise ConfigError(
                f"key_layout has {len(self.key_layout)} keys for {self.pad_count} pads"
            )
        if not self.playback_rates or sorted(self.playback_rates) != list(self.playback_rates):
            raise ConfigError("playback_rates must be a non-empty ascending sequence")
        if not 0 <= self.default_volume <= 100:
            raise ConfigError(f"default_volume out of range: {self.default_volume}")

    @property
    def min_rate(self) -> float:
        return self.playback_rates[0]

    @property
    def max_rate(self) -> float:
        return self.playback_rates[-1]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['playback_rates'] = list(self.playback_rates)
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> EngineConfig:
        known = {f.name for f in fields(EngineConfig)}
        kwargs = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            else:
                logger.warning(f"EngineConfig: ignoring unknown key '{key}'")
        try:
            return EngineConfig(**kwargs)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    def save(self, path: str):
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @staticmethod
    def load(path: str) -> EngineConfig:
        with open(path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a JSON object")
        return EngineConfig.from_dict(data)
