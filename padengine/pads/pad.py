# padengine/pads/pad.py
"""
Pad - One of the fixed trigger slots, plus the registry holding all of them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..core.config import PLAYBACK_RATES

if TYPE_CHECKING:
    from ..player.base import MediaPlayer


# =============================================================================
# Mode / Value Helpers
# =============================================================================

class PadMode(Enum):
    GATE = 'gate'
    ONESHOT = 'oneshot'
    LOOP = 'loop'

    def next(self) -> PadMode:
        """Cycle gate -> oneshot -> loop -> gate."""
        order = list(PadMode)
        return order[(order.index(self) + 1) % len(order)]

    @staticmethod
    def parse(value, default: PadMode = None) -> PadMode:
        if isinstance(value, PadMode):
            return value
        try:
            return PadMode(value)
        except ValueError:
            if default is None:
                raise
            return default


def snap_rate(value: float, rates: Sequence[float] = PLAYBACK_RATES) -> float:
    """Snap to the nearest allowed playback rate (ties keep the lower rate)."""
    nearest = rates[0]
    for rate in rates[1:]:
        if abs(rate - value) < abs(nearest - value):
            nearest = rate
    return nearest


def clamp_volume(value) -> int:
    return max(0, min(100, int(round(value))))


# =============================================================================
# Pad
# =============================================================================

@dataclass(frozen=True)
class PadSettings:
    """The copyable part of a pad: everything except identity and handle."""
    clip_ref: str
    start_time: float = 0.0
    end_time: float = 0.0
    mode: PadMode = PadMode.GATE
    volume: int = 100
    playback_rate: float = 1.0
    retrigger: bool = True
    title: str = ""


@dataclass
class Pad:
    index: int
    clip_ref: Optional[str] = None
    title: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    mode: PadMode = PadMode.GATE
    is_playing: bool = False
    volume: int = 100
    playback_rate: float = 1.0
    retrigger: bool = True

    # Backend handle (exclusively owned)
    player: Optional[MediaPlayer] = field(default=None, repr=False, compare=False)
    ready: bool = False
    load_token: int = 0

    @property
    def is_empty(self) -> bool:
        return self.clip_ref is None

    @property
    def is_ready(self) -> bool:
        """Loaded, handle alive and duration known."""
        return self.clip_ref is not None and self.player is not None and self.ready

    @property
    def window(self) -> Tuple[float, float]:
        return (self.start_time, self.end_time)

    @property
    def window_length(self) -> float:
        return self.end_time - self.start_time

    def settings(self) -> PadSettings:
        return PadSettings(
            clip_ref=self.clip_ref,
            start_time=self.start_time,
            end_time=self.end_time,
            mode=self.mode,
            volume=self.volume,
            playback_rate=self.playback_rate,
            retrigger=self.retrigger,
            title=self.title,
        )

    def apply_settings(self, settings: PadSettings):
        self.clip_ref = settings.clip_ref
        self.start_time = settings.start_time
        self.end_time = settings.end_time
        self.mode = settings.mode
        self.volume = settings.volume
        self.playback_rate = settings.playback_rate
        self.retrigger = settings.retrigger
        self.title = settings.title

    def reset(self, volume: int = 100, playback_rate: float = 1.0):
        """Back to defaults. The handle must already be destroyed."""
        self.clip_ref = None
        self.title = ""
        self.start_time = 0.0
        self.end_time = 0.0
        self.duration = 0.0
        self.mode = PadMode.GATE
        self.is_playing = False
        self.volume = volume
        self.playback_rate = playback_rate
        self.retrigger = True
        self.player = None
        self.ready = False


# =============================================================================
# Registry
# =============================================================================

class PadRegistry:
    """Fixed-size ordered pad collection addressed by index."""

    def __init__(self, count: int = 16):
        self._pads: List[Pad] = [Pad(index=i) for i in range(count)]

    def __len__(self) -> int:
        return len(self._pads)

    def __iter__(self) -> Iterator[Pad]:
        return iter(self._pads)

    def __getitem__(self, index: int) -> Pad:
        if not 0 <= index < len(self._pads):
            raise IndexError(f"pad index {index} out of range")
        return self._pads[index]

    def is_valid(self, index) -> bool:
        return isinstance(index, int) and 0 <= index < len(self._pads)

    def get(self, index) -> Optional[Pad]:
        if not self.is_valid(index):
            return None
        return self._pads[index]

    def first_empty(self) -> Optional[int]:
        for pad in self._pads:
            if pad.is_empty:
                return pad.index
        return None

    def first_loaded(self) -> Optional[int]:
        for pad in self._pads:
            if not pad.is_empty:
                return pad.index
        return None

    def playing(self) -> Tuple[Pad, ...]:
        """Snapshot of pads currently Playing."""
        return tuple(p for p in self._pads if p.is_playing)

    @property
    def any_playing(self) -> bool:
        return any(p.is_playing for p in self._pads)
