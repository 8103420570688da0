"""
MidiPadInput - MIDI note signals to pad Trigger/Release.

Note events arrive on the rtmidi thread; they are handed to `dispatch`
(normally `TickScheduler.post`) so the engine is mutated on its own thread.
"""

from __future__ import annotations
from typing import Callable, List, TYPE_CHECKING

from ..core.signal import SIGNAL_MIDI_NOTE_ON, SIGNAL_MIDI_NOTE_OFF, Connection
from ..engine import InputSource, call_now
from ..midi.mapper import NoteMapper

if TYPE_CHECKING:
    from ..core.signal import SignalBridge
    from ..engine import PadEngine


class MidiPadInput:

    def __init__(
        self,
        engine: PadEngine,
        signals: SignalBridge = None,
        mapper: NoteMapper = None,
        dispatch: Callable = None,
    ):
        self.engine = engine
        self.signals = signals or engine.signals
        self.mapper = mapper or NoteMapper(engine.config.midi_start_note, engine.config.pad_count)
        self._dispatch = dispatch or call_now

        self._connections: List[Connection] = [
            self.signals.connect(SIGNAL_MIDI_NOTE_ON, self._on_note_on),
            self.signals.connect(SIGNAL_MIDI_NOTE_OFF, self._on_note_off),
        ]

    def _on_note_on(self, note: int, velocity: int, channel: int):
        index = self.mapper.note_to_pad(note)
        if index is None:
            return
        if velocity > 0:
            self._dispatch(self.engine.trigger, index, InputSource.MIDI)
        else:
            self._dispatch(self.engine.release, index, InputSource.MIDI)

    def _on_note_off(self, note: int, velocity: int, channel: int):
        index = self.mapper.note_to_pad(note)
        if index is None:
            return
        self._dispatch(self.engine.release, index, InputSource.MIDI)

    def detach(self):
        for connection in self._connections:
            connection.disconnect()
        self._connections = []
