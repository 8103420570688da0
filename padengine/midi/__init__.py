"""
MIDI Module
===========

MIDI input handling for drum-pad controllers.

Quick Start:
    from padengine.core.signal import SignalBridge
    from padengine.midi import MidiManager, NoteMapper

    signals = SignalBridge()
    midi = MidiManager(signals)
    print(midi.list_input_ports())
    midi.enable()

Dependencies:
    pip install python-rtmidi
"""

from .manager import MidiManager, MidiMessage, MidiMessageType, RTMIDI_AVAILABLE, parse_message
from .mapper import NoteMapper

__all__ = [
    'MidiManager',
    'MidiMessage',
    'MidiMessageType',
    'NoteMapper',
    'RTMIDI_AVAILABLE',
    'parse_message',
]
