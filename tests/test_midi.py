from padengine.core.errors import MidiAccessError
from padengine.core.signal import (
    SIGNAL_MIDI_ERROR, SIGNAL_MIDI_NOTE_OFF, SIGNAL_MIDI_NOTE_ON,
    SignalBridge, SignalRecorder,
)
from padengine.midi import MidiManager, MidiMessageType, NoteMapper, parse_message


def test_note_mapper():
    mapper = NoteMapper()
    assert mapper.note_to_pad(36) == 0
    assert mapper.note_to_pad(40) == 4
    assert mapper.note_to_pad(51) == 15
    assert mapper.note_to_pad(52) is None
    assert mapper.note_to_pad(35) is None
    assert mapper.note_to_pad(60) is None
    assert mapper.pad_to_note(4) == 40


def test_parse_message():
    msg = parse_message([0x93, 40, 100])
    assert msg.msg_type == MidiMessageType.NOTE_ON
    assert msg.channel == 3
    assert msg.note == 40
    assert msg.velocity == 100
    assert msg.is_note_on()


def test_parse_note_off_forms():
    assert parse_message([0x80, 40, 64]).is_note_off()
    assert parse_message([0x90, 40, 0]).is_note_off()
    assert not parse_message([0x90, 40, 0]).is_note_on()


def test_parse_ignores_system_messages():
    assert parse_message([]) is None
    assert parse_message([0xF8]) is None
    assert parse_message([0xF0, 1, 2, 0xF7]) is None


def test_process_message_emits_note_signals():
    bridge = SignalBridge()
    recorder = SignalRecorder(bridge, SIGNAL_MIDI_NOTE_ON, SIGNAL_MIDI_NOTE_OFF)
    midi = MidiManager(bridge)

    midi._process_message([0x91, 38, 90])
    midi._process_message([0x91, 38, 0])
    midi._process_message([0x81, 38, 0])
    midi._process_message([0xB0, 1, 64])

    assert recorder.of(SIGNAL_MIDI_NOTE_ON) == [(38, 90, 1)]
    assert recorder.of(SIGNAL_MIDI_NOTE_OFF) == [(38, 0, 1), (38, 0, 1)]


def test_midi_callback_unpacks_rtmidi_event():
    bridge = SignalBridge()
    recorder = SignalRecorder(bridge, SIGNAL_MIDI_NOTE_ON)
    midi = MidiManager(bridge)
    midi._midi_callback(([0x90, 36, 127], 0.001))
    assert recorder.of(SIGNAL_MIDI_NOTE_ON) == [(36, 127, 0)]


def test_access_failure_reported_once(monkeypatch):
    bridge = SignalBridge()
    recorder = SignalRecorder(bridge, SIGNAL_MIDI_ERROR)
    midi = MidiManager(bridge)

    def denied():
        raise MidiAccessError("access denied")

    monkeypatch.setattr(midi, '_open_all', denied)

    assert not midi.enable()
    assert not midi.enable()
    assert not midi.is_enabled
    assert recorder.of(SIGNAL_MIDI_ERROR) == [("access denied",)]


def test_controller_messages_are_not_notes():
    msg = parse_message([0xB2, 1, 64])
    assert msg.channel == 2
    assert not msg.is_note_on()
    assert not msg.is_note_off()
