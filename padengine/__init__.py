"""
padengine
=========

Sixteen-pad sample trigger engine: trimmed clips on pads, fired by keyboard,
pointer or MIDI in gate, one-shot or loop mode, with shareable state.

Quick Start:
    from padengine import SamplerManager

    sampler = SamplerManager()
    sampler.load_files(["kick.wav"])
    sampler.start()
    sampler.engine.trigger(0)
"""

from .core.config import EngineConfig
from .core.errors import PadEngineError, ClipResolveError, MidiAccessError, ConfigError
from .core.signal import SignalBridge
from .codec import PadRecord, encode_state, decode_state
from .engine import PadEngine, EngineState, InputSource
from .manager import SamplerManager
from .pads.pad import Pad, PadMode

__version__ = "0.1.0"

__all__ = [
    'EngineConfig',
    'PadEngineError',
    'ClipResolveError',
    'MidiAccessError',
    'ConfigError',
    'SignalBridge',
    'PadRecord',
    'encode_state',
    'decode_state',
    'PadEngine',
    'EngineState',
    'InputSource',
    'SamplerManager',
    'Pad',
    'PadMode',
]
