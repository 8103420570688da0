"""
KeyboardInput - Computer keyboard as a 4x4 pad grid.

    1 2 3 4
    q w e r
    a s d f
    z x c v
"""

from __future__ import annotations
from typing import Callable, Dict, Optional, Set, TYPE_CHECKING

from ..engine import InputSource, call_now

if TYPE_CHECKING:
    from ..engine import PadEngine

SPACE_KEYS = (' ', 'space')
ESCAPE_KEYS = ('escape', 'esc')


def _normalize(key: str) -> str:
    return key if key == ' ' else key.lower()


class KeyboardInput:
    """
    Key down/up to Trigger/Release.

    Held keys are tracked so OS auto-repeat never re-triggers. Set
    `suspended` while a text field has focus. Engine calls go through
    `dispatch` (default: inline).
    """

    def __init__(self, engine: PadEngine, layout: str = None, dispatch: Callable = None):
        self.engine = engine
        layout = layout or engine.config.key_layout
        self._keymap: Dict[str, int] = {key: i for i, key in enumerate(layout.lower())}
        self._held: Set[str] = set()
        self.suspended = False
        self._dispatch = dispatch or call_now

    def pad_for_key(self, key: str) -> Optional[int]:
        return self._keymap.get(_normalize(key))

    def key_down(self, key: str) -> bool:
        """Returns True when the key was consumed."""
        if self.suspended:
            return False
        key = _normalize(key)

        if key in SPACE_KEYS:
            self._dispatch(self.engine.stop_all)
            return True
        if key in ESCAPE_KEYS:
            self._dispatch(self.engine.exit_fullscreen)
            return True

        index = self._keymap.get(key)
        if index is None:
            return False
        if key in self._held:
            return True
        self._held.add(key)
        self._dispatch(self.engine.trigger, index, InputSource.KEYBOARD)
        return True

    def key_up(self, key: str) -> bool:
        key = _normalize(key)
        if key not in self._held:
            return False
        self._held.discard(key)
        self._dispatch(self.engine.release, self._keymap[key], InputSource.KEYBOARD)
        return True

    def release_all(self):
        """Release every held key (window lost focus)."""
        for key in list(self._held):
            self.key_up(key)
