# padengine/core/__init__.py
"""Core module - signals, configuration and error types."""

from .signal import (
    SignalBridge,
    Connection,
    SignalRecorder,
    on_signal,
    SIGNAL_TRIGGER,
    SIGNAL_RELEASE,
    SIGNAL_LOAD_REQUESTED,
    SIGNAL_PAD_LOADED,
    SIGNAL_PAD_CLEARED,
    SIGNAL_PAD_CHANGED,
    SIGNAL_PLAYBACK_STARTED,
    SIGNAL_PLAYBACK_STOPPED,
    SIGNAL_LOOP_RESTARTED,
    SIGNAL_TRANSPORT_CHANGED,
    SIGNAL_PLAYHEAD,
    SIGNAL_STACK_CHANGED,
    SIGNAL_SELECTION_CHANGED,
    SIGNAL_FULLSCREEN_CHANGED,
    SIGNAL_STATE_CHANGED,
    SIGNAL_ERROR,
    SIGNAL_MIDI_NOTE_ON,
    SIGNAL_MIDI_NOTE_OFF,
    SIGNAL_MIDI_CONNECTED,
    SIGNAL_MIDI_DISCONNECTED,
    SIGNAL_MIDI_ERROR,
)

from .config import EngineConfig, PLAYBACK_RATES, KEY_LAYOUT
from .errors import PadEngineError, ClipResolveError, MidiAccessError, ConfigError

__all__ = [
    'SignalBridge',
    'Connection',
    'SignalRecorder',
    'on_signal',
    'EngineConfig',
    'PLAYBACK_RATES',
    'KEY_LAYOUT',
    'PadEngineError',
    'ClipResolveError',
    'MidiAccessError',
    'ConfigError',
]
