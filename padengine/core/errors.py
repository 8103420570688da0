"""
Exception types for the pad engine.

None of these are fatal: callers at the engine boundary catch them and turn
them into an `error` signal or a log line.
"""


class PadEngineError(Exception):
    """Base class for all padengine errors."""


class ClipResolveError(PadEngineError):
    """A pasted/dropped text does not name a playable clip."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Cannot resolve a clip from {text!r}")


class MidiAccessError(PadEngineError):
    """MIDI devices could not be opened (backend missing or access denied)."""


class ConfigError(PadEngineError):
    """Invalid engine configuration value."""
