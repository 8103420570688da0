"""
TimelineDrag - Trim handle and range dragging on the selected pad's timeline.

Horizontal movement maps to time as `dx / width * duration`, scaled down by
`dampen()` the further the pointer strays vertically from where the drag
began (fine adjustment).
"""

from __future__ import annotations
from enum import Enum
from typing import Callable, Optional, TYPE_CHECKING

from ..engine import call_now

if TYPE_CHECKING:
    from ..engine import PadEngine
    from ..pads.pad import Pad


def dampen(dy: float, threshold: float = 50.0, falloff: float = 50.0) -> float:
    """1.0 within `threshold` px vertically, then 1 / (1 + (d - threshold) / falloff)."""
    distance = abs(dy)
    if distance < threshold:
        return 1.0
    return 1.0 / (1.0 + (distance - threshold) / falloff)


class DragTarget(Enum):
    START = 'start'
    END = 'end'
    RANGE = 'range'


class TimelineDrag:

    def __init__(self, engine: PadEngine, width: float, dispatch: Callable = None):
        self.engine = engine
        self.width = width
        self._dispatch = dispatch or call_now

        self.target: Optional[DragTarget] = None
        self._index: Optional[int] = None
        self._start_y = 0.0
        self._last_x = 0.0

    @property
    def active(self) -> bool:
        return self.target is not None

    def _selected(self) -> Optional[Pad]:
        pad = self.engine.selected_pad
        if pad is None or pad.is_empty or pad.duration <= 0:
            return None
        return pad

    def begin(self, target: DragTarget, x: float, y: float) -> bool:
        """Press on a handle (START/END) or on the window body (RANGE)."""
        pad = self._selected()
        if pad is None:
            return False
        self.target = target
        self._index = pad.index
        self._start_y = y
        self._last_x = x
        return True

    def begin_at(self, x: float, y: float) -> bool:
        """Press on the timeline body: starts a range drag only inside the window."""
        pad = self._selected()
        if pad is None or self.width <= 0:
            return False
        clicked = (x / self.width) * pad.duration
        if pad.start_time < clicked < pad.end_time:
            return self.begin(DragTarget.RANGE, x, y)
        return False

    def time_delta(self, x: float, y: float) -> float:
        pad = self.engine.pads.get(self._index)
        if pad is None or self.width <= 0:
            return 0.0
        cfg = self.engine.config
        dx = x - self._last_x
        self._last_x = x
        factor = dampen(y - self._start_y, cfg.dampen_threshold_px, cfg.dampen_falloff_px)
        return (dx / self.width) * pad.duration * factor

    def move(self, x: float, y: float):
        if not self.active:
            return
        delta = self.time_delta(x, y)
        if delta == 0:
            return
        self._dispatch(self._apply_delta, self._index, self.target, delta)

    def _apply_delta(self, index: int, target: DragTarget, delta: float):
        """Runs where the engine lives, against the pad's current window."""
        pad = self.engine.pads.get(index)
        if pad is None:
            return
        if target is DragTarget.START:
            self.engine.set_start(index, pad.start_time + delta)
        elif target is DragTarget.END:
            self.engine.set_end(index, pad.end_time + delta)
        else:
            self.engine.shift_range(index, delta)

    def end(self):
        if not self.active:
            return
        self.target = None
        self._index = None
        self._dispatch(self.engine.publish_state)
