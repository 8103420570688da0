"""
MidiManager - MIDI input lifecycle, routed through SignalBridge.

Every available input port is opened; notes from all of them are merged
(device and channel agnostic). Access failures are reported once and leave
MIDI disabled.
"""

from __future__ import annotations
from typing import List, Optional, TYPE_CHECKING
from dataclasses import dataclass
import logging

from ..core.errors import MidiAccessError
from ..core.signal import (
    SIGNAL_MIDI_NOTE_ON, SIGNAL_MIDI_NOTE_OFF,
    SIGNAL_MIDI_CONNECTED, SIGNAL_MIDI_DISCONNECTED, SIGNAL_MIDI_ERROR,
)

if TYPE_CHECKING:
    from ..core.signal import SignalBridge

logger = logging.getLogger(__name__)

try:
    import rtmidi
    RTMIDI_AVAILABLE = True
except ImportError:
    RTMIDI_AVAILABLE = False


# =============================================================================
# MIDI Message Types
# =============================================================================

class MidiMessageType:
    NOTE_OFF = 0x80
    NOTE_ON = 0x90
    SYSEX = 0xF0


@dataclass
class MidiMessage:
    """Parsed MIDI message."""
    msg_type: int
    channel: int
    data1: int
    data2: int

    @property
    def note(self) -> int:
        return self.data1

    @property
    def velocity(self) -> int:
        return self.data2

    def is_note_on(self) -> bool:
        return self.msg_type == MidiMessageType.NOTE_ON and self.velocity > 0

    def is_note_off(self) -> bool:
        return (self.msg_type == MidiMessageType.NOTE_OFF or
                (self.msg_type == MidiMessageType.NOTE_ON and self.velocity == 0))


def parse_message(data: List[int]) -> Optional[MidiMessage]:
    """Parse raw bytes; None for empty and system (channel-less) messages."""
    if not data:
        return None
    status = data[0]
    if status >= MidiMessageType.SYSEX:
        return None
    return MidiMessage(
        msg_type=status & 0xF0,
        channel=status & 0x0F,
        data1=data[1] if len(data) > 1 else 0,
        data2=data[2] if len(data) > 2 else 0,
    )


# =============================================================================
# MIDI Manager
# =============================================================================

class MidiManager:
    """
    Opens all MIDI inputs and emits note signals.

    Usage:
        signals = SignalBridge()
        signals.connect(SIGNAL_MIDI_NOTE_ON, lambda n, v, c: print(f"Note {n}"))

        midi = MidiManager(signals)
        midi.enable()
    """

    def __init__(self, signals: SignalBridge, client_name: str = "padengine"):
        self.signals = signals
        self.client_name = client_name

        self._inputs: List[rtmidi.MidiIn] = []
        self._port_names: List[str] = []
        self._enabled = False
        self._error_reported = False

    @property
    def is_available(self) -> bool:
        return RTMIDI_AVAILABLE

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def port_names(self) -> List[str]:
        return list(self._port_names)

    def _create_input(self) -> rtmidi.MidiIn:
        return rtmidi.MidiIn(name=self.client_name)

    def list_input_ports(self) -> List[str]:
        """List available MIDI input ports (empty when MIDI is inaccessible)."""
        if not RTMIDI_AVAILABLE:
            return []
        try:
            scanner = self._create_input()
        except Exception as e:
            logger.error(f"MidiManager: cannot access MIDI devices: {e}")
            return []
        try:
            return list(scanner.get_ports())
        finally:
            scanner.delete()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def enable(self) -> bool:
        """Open every input port. Returns False, once reported, on failure."""
        if self._enabled:
            return True
        try:
            self._open_all()
        except MidiAccessError as e:
            logger.error(f"MidiManager: {e}")
            self._close_all()
            self._report_error(str(e))
            return False
        self._enabled = True
        return True

    def disable(self):
        self._close_all()
        self._enabled = False

    def _open_all(self):
        if not RTMIDI_AVAILABLE:
            raise MidiAccessError("python-rtmidi not installed")
        try:
            scanner = self._create_input()
            ports = scanner.get_ports()
        except Exception as e:
            raise MidiAccessError(f"cannot access MIDI devices: {e}") from e

        if not ports:
            scanner.delete()
            logger.info("MidiManager: no MIDI input ports found")
            return

        for i, name in enumerate(ports):
            try:
                midi_in = scanner if i == 0 else self._create_input()
                midi_in.open_port(i)
                midi_in.set_callback(self._midi_callback)
            except Exception as e:
                raise MidiAccessError(f"cannot open input '{name}': {e}") from e
            self._inputs.append(midi_in)
            self._port_names.append(name)
            logger.info(f"MidiManager: opened input '{name}'")
            self.signals.emit(SIGNAL_MIDI_CONNECTED, name)

    def _close_all(self):
        for midi_in, name in zip(self._inputs, self._port_names):
            try:
                midi_in.cancel_callback()
                midi_in.close_port()
                midi_in.delete()
            except Exception as e:
                logger.error(f"MidiManager: error closing '{name}': {e}")
            self.signals.emit(SIGNAL_MIDI_DISCONNECTED, name)
        self._inputs = []
        self._port_names = []

    def _report_error(self, message: str):
        if self._error_reported:
            return
        self._error_reported = True
        self.signals.emit(SIGNAL_MIDI_ERROR, message)

    # =========================================================================
    # Input
    # =========================================================================

    def _midi_callback(self, event, data=None):
        """Called by rtmidi (on its own thread) when a message arrives."""
        message_data, _ = event
        self._process_message(message_data)

    def _process_message(self, data: List[int]):
        msg = parse_message(data)
        if msg is None:
            return
        if msg.is_note_on():
            self.signals.emit(SIGNAL_MIDI_NOTE_ON, msg.note, msg.velocity, msg.channel)
        elif msg.is_note_off():
            self.signals.emit(SIGNAL_MIDI_NOTE_OFF, msg.note, msg.velocity, msg.channel)

    # =========================================================================
    # Simulation (for testing without hardware)
    # =========================================================================

    def simulate_note_on(self, note: int, velocity: int = 127, channel: int = 0):
        self._process_message([MidiMessageType.NOTE_ON | channel, note, velocity])

    def simulate_note_off(self, note: int, velocity: int = 0, channel: int = 0):
        self._process_message([MidiMessageType.NOTE_OFF | channel, note, velocity])
