"""
PointerInput - Mouse / touch presses on the pad grid, plus drag and drop.
"""

from __future__ import annotations
from typing import Callable, Set, TYPE_CHECKING

from ..engine import InputSource, call_now

if TYPE_CHECKING:
    from ..engine import PadEngine


class PointerInput:
    """
    Press/release/leave to Trigger/Release.

    Drops return the engine's result when `dispatch` runs them inline, and
    None when they were queued.
    """

    def __init__(self, engine: PadEngine, dispatch: Callable = None):
        self.engine = engine
        self._pressed: Set[int] = set()
        self._dispatch = dispatch or call_now

    def press(self, index: int) -> bool:
        pad = self.engine.pads.get(index)
        if pad is None:
            return False
        if pad.is_empty:
            # Engine emits load_requested; nothing to release later
            self._dispatch(self.engine.trigger, index, InputSource.POINTER)
            return False
        self._pressed.add(index)
        self._dispatch(self.engine.trigger, index, InputSource.POINTER)
        return True

    def release(self, index: int) -> bool:
        if index not in self._pressed:
            return False
        self._pressed.discard(index)
        self._dispatch(self.engine.release, index, InputSource.POINTER)
        return True

    def leave(self, index: int) -> bool:
        """Pointer left the pad while pressed: same as release."""
        return self.release(index)

    # =========================================================================
    # Drag and Drop
    # =========================================================================

    def drop(self, source: int, target: int):
        """Pad dragged onto another pad copies it."""
        return self._dispatch(self.engine.copy_pad, source, target)

    def drop_on_trash(self, source: int):
        return self._dispatch(self.engine.delete_pad, source)

    def drop_text(self, index: int, text: str):
        """A link or file path dropped onto a pad."""
        return self._dispatch(self.engine.load_text, index, text)
