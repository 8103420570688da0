"""
Knobs - Vertical-drag controls for the selected pad's volume and rate.

Dragging up increases the value; the full range spans `drag_range_px`. A
press that never moves further than `click_threshold_px` counts as a click.
Values only change once the gesture became a drag.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional, TYPE_CHECKING

from ..engine import call_now

if TYPE_CHECKING:
    from ..engine import PadEngine
    from ..pads.pad import Pad


class KnobGesture:
    """Pointer state of one knob drag."""

    def __init__(
        self,
        minimum: float,
        maximum: float,
        drag_range_px: float = 200.0,
        click_threshold_px: float = 3.0,
    ):
        self.minimum = minimum
        self.maximum = maximum
        self.drag_range_px = drag_range_px
        self.click_threshold_px = click_threshold_px

        self._active = False
        self._dragged = False
        self._start_y = 0.0
        self._start_value = 0.0

    @property
    def sensitivity(self) -> float:
        return (self.maximum - self.minimum) / self.drag_range_px

    @property
    def active(self) -> bool:
        return self._active

    @property
    def dragged(self) -> bool:
        return self._dragged

    def begin(self, y: float, value: float):
        self._active = True
        self._dragged = False
        self._start_y = y
        self._start_value = value

    def move(self, y: float) -> Optional[float]:
        """New clamped value, or None while still within the click threshold."""
        if not self._active:
            return None
        delta = self._start_y - y    # up is positive
        if abs(delta) > self.click_threshold_px:
            self._dragged = True
        if not self._dragged:
            return None
        value = self._start_value + delta * self.sensitivity
        return max(self.minimum, min(self.maximum, value))

    def end(self) -> bool:
        """Finish the gesture; True if it was a drag."""
        dragged = self._dragged
        self._active = False
        self._dragged = False
        return dragged


class _PadKnob:
    """
    Knob bound to whichever pad is selected when the press begins.

    Value changes, commits and clicks reach the engine through `dispatch`.
    """

    def __init__(self, engine: PadEngine, minimum: float, maximum: float, dispatch: Callable = None):
        self.engine = engine
        cfg = engine.config
        self.gesture = KnobGesture(minimum, maximum, cfg.knob_drag_range_px, cfg.click_threshold_px)
        self._index: Optional[int] = None
        self._dispatch = dispatch or call_now

    def _value(self, pad: Pad) -> float:
        raise NotImplementedError

    def _apply(self, index: int, value: float, publish: bool = False):
        raise NotImplementedError

    def _selected(self) -> Optional[Pad]:
        pad = self.engine.selected_pad
        if pad is None or pad.is_empty:
            return None
        return pad

    def press(self, y: float) -> bool:
        pad = self._selected()
        if pad is None:
            return False
        self._index = pad.index
        self.gesture.begin(y, self._value(pad))
        return True

    def move(self, y: float):
        value = self.gesture.move(y)
        if value is not None and self._index is not None:
            self._dispatch(self._apply, self._index, value)

    def release(self):
        if not self.gesture.active:
            return
        if self.gesture.end():
            self._dispatch(self.engine.publish_state)
        else:
            self._dispatch(self.click)
        self._index = None

    def click(self):
        pass

    def double_click(self):
        pad = self._selected()
        if pad is not None:
            self._dispatch(self.reset, pad.index)

    def reset(self, index: int):
        raise NotImplementedError


class VolumeKnob(_PadKnob):
    """Click toggles mute, remembering the pre-mute volume per pad."""

    def __init__(self, engine: PadEngine, dispatch: Callable = None):
        super().__init__(engine, 0, 100, dispatch)
        self._before_mute: Dict[int, int] = {}

    def _value(self, pad: Pad) -> float:
        return pad.volume

    def _apply(self, index: int, value: float, publish: bool = False):
        self.engine.set_volume(index, value, publish=publish)

    def click(self):
        pad = self._selected()
        if pad is None:
            return
        if pad.volume > 0:
            self._before_mute[pad.index] = pad.volume
            self._apply(pad.index, 0, publish=True)
        else:
            restore = self._before_mute.get(pad.index, 100) or 100
            self._apply(pad.index, restore, publish=True)

    def reset(self, index: int):
        self._apply(index, self.engine.config.default_volume, publish=True)


class RateKnob(_PadKnob):
    """Values snap to the discrete playback rates."""

    def __init__(self, engine: PadEngine, dispatch: Callable = None):
        super().__init__(engine, engine.config.min_rate, engine.config.max_rate, dispatch)

    def _value(self, pad: Pad) -> float:
        return pad.playback_rate

    def _apply(self, index: int, value: float, publish: bool = False):
        self.engine.set_playback_rate(index, value, publish=publish)

    def reset(self, index: int):
        self._apply(index, self.engine.config.default_rate, publish=True)
