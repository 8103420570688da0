# padengine/core/signal.py
"""
SignalBridge - Observer pattern hub for routing engine events to listeners.

The engine never renders anything itself; views, LED controllers and the
share-link writer subscribe here.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

# =============================================================================
# Signal Types
# =============================================================================

# Normalized input
SIGNAL_TRIGGER = 'trigger'                  # (index, source)
SIGNAL_RELEASE = 'release'                  # (index, source)
SIGNAL_LOAD_REQUESTED = 'load_requested'    # (index,) - empty pad pressed

# Pad lifecycle
SIGNAL_PAD_LOADED = 'pad_loaded'            # (index,) - player reported ready
SIGNAL_PAD_CLEARED = 'pad_cleared'          # (index,)
SIGNAL_PAD_CHANGED = 'pad_changed'          # (index,) - settings or trim edited

# Playback
SIGNAL_PLAYBACK_STARTED = 'playback_started'  # (index,)
SIGNAL_PLAYBACK_STOPPED = 'playback_stopped'  # (index,)
SIGNAL_LOOP_RESTARTED = 'loop_restarted'      # (index,)
SIGNAL_TRANSPORT_CHANGED = 'transport_changed'  # (any_playing,)
SIGNAL_PLAYHEAD = 'playhead'                # (index, fraction)

# View state
SIGNAL_STACK_CHANGED = 'stack_changed'      # (layers,)
SIGNAL_SELECTION_CHANGED = 'selection_changed'  # (index or None,)
SIGNAL_FULLSCREEN_CHANGED = 'fullscreen_changed'  # (enabled,)

# Sharing / errors
SIGNAL_STATE_CHANGED = 'state_changed'      # (encoded,)
SIGNAL_ERROR = 'error'                      # (kind, message)

# MIDI Signals
SIGNAL_MIDI_NOTE_ON = 'midi_note_on'        # (note, velocity, channel)
SIGNAL_MIDI_NOTE_OFF = 'midi_note_off'      # (note, velocity, channel)
SIGNAL_MIDI_CONNECTED = 'midi_connected'    # (port_name,)
SIGNAL_MIDI_DISCONNECTED = 'midi_disconnected'  # (port_name,)
SIGNAL_MIDI_ERROR = 'midi_error'            # (message,)


# =============================================================================
# Connection Handle
# =============================================================================

@dataclass
class Connection:
    """Handle to a signal connection."""
    signal: str
    callback_id: int
    bridge: SignalBridge = None

    def disconnect(self):
        if self.bridge:
            self.bridge._remove_connection(self.signal, self.callback_id)
            self.bridge = None


# =============================================================================
# Signal Bridge
# =============================================================================

class SignalBridge:
    """Central hub for signal routing."""

    def __init__(self):
        self._connections: Dict[str, Dict[int, Callable]] = {}
        self._next_id: int = 0
        self._blocked: set = set()
        self._emit_depth: int = 0
        self._pending_removes: List[tuple] = []

    def connect(self, signal: str, handler: Callable) -> Connection:
        if signal not in self._connections:
            self._connections[signal] = {}

        callback_id = self._next_id
        self._next_id += 1

        self._connections[signal][callback_id] = handler

        return Connection(signal=signal, callback_id=callback_id, bridge=self)

    def disconnect_all(self, signal: str = None):
        if signal:
            self._connections.pop(signal, None)
        else:
            self._connections.clear()

    def emit(self, signal: str, *args, **kwargs):
        if signal in self._blocked:
            return

        handlers = self._connections.get(signal, {})
        if not handlers:
            return

        self._emit_depth += 1

        try:
            for callback_id, handler in list(handlers.items()):
                try:
                    handler(*args, **kwargs)
                except Exception as e:
                    logger.error(f"Signal handler error [{signal}]: {e}")
        finally:
            self._emit_depth -= 1

            if self._emit_depth == 0 and self._pending_removes:
                for sig, cid in self._pending_removes:
                    self._do_remove(sig, cid)
                self._pending_removes.clear()

    def block(self, signal: str):
        self._blocked.add(signal)

    def unblock(self, signal: str):
        self._blocked.discard(signal)

    def is_connected(self, signal: str) -> bool:
        return bool(self._connections.get(signal))

    def _remove_connection(self, signal: str, callback_id: int):
        if self._emit_depth > 0:
            self._pending_removes.append((signal, callback_id))
        else:
            self._do_remove(signal, callback_id)

    def _do_remove(self, signal: str, callback_id: int):
        if signal in self._connections:
            self._connections[signal].pop(callback_id, None)


# =============================================================================
# Convenience
# =============================================================================

def on_signal(bridge: SignalBridge, signal: str):
    """Decorator to connect a function to a signal."""
    def decorator(func):
        bridge.connect(signal, func)
        return func
    return decorator


class SignalRecorder:
    """Collects every emission of the given signals, in order.

    Handy for views that batch updates and for tests.
    """

    def __init__(self, bridge: SignalBridge, *signals: str):
        self.events: List[tuple] = []
        self._connections: List[Connection] = []
        for signal in signals:
            self._connections.append(
                bridge.connect(signal, self._make_handler(signal))
            )

    def _make_handler(self, signal: str) -> Callable:
        def handler(*args):
            self.events.append((signal,) + args)
        return handler

    def of(self, signal: str) -> List[tuple]:
        return [e[1:] for e in self.events if e[0] == signal]

    def last(self, signal: str) -> Optional[tuple]:
        matching = self.of(signal)
        return matching[-1] if matching else None

    def clear(self):
        self.events.clear()

    def detach(self):
        for conn in self._connections:
            conn.disconnect()
        self._connections.clear()
