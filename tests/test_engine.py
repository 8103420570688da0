from padengine.core.signal import (
    SIGNAL_ERROR, SIGNAL_LOAD_REQUESTED, SIGNAL_LOOP_RESTARTED, SIGNAL_PAD_CLEARED,
    SIGNAL_PLAYBACK_STARTED, SIGNAL_PLAYHEAD, SIGNAL_STATE_CHANGED, SIGNAL_TRIGGER,
)
from padengine.engine import InputSource, PadEngine
from padengine.pads.pad import PadMode
from padengine.pads.stack import LayerHint
from padengine.player.base import PlayerEvent, PlayerState
from padengine.time.scheduler import TickScheduler

from conftest import FakeBackend

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def load(engine, index=0, clip="clip", mode=None, start=None, end=None):
    engine.load_clip(index, clip)
    if mode is not None:
        engine.set_mode(index, mode)
    if start is not None:
        engine.set_start(index, start)
    if end is not None:
        engine.set_end(index, end)
    return engine.pad(index)


# =============================================================================
# Loading
# =============================================================================

def test_fresh_load_sets_defaults_and_selects(engine, backend, recorder):
    assert engine.load_clip(0, "clip")
    pad = engine.pad(0)
    player = backend.by_pad[0]

    assert pad.is_ready
    assert pad.duration == 10.0
    assert pad.window == (0.0, 10.0)
    assert pad.title == "title:clip"
    assert player.volume == 100
    assert player.rate == 1.0
    assert engine.selected == 0
    assert recorder.of(SIGNAL_STATE_CHANGED)


def test_reload_resets_previous_settings(engine, backend):
    pad = load(engine, mode=PadMode.LOOP, start=2.0, end=5.0)
    engine.set_volume(0, 30)
    first = backend.by_pad[0]

    engine.load_clip(0, "other")
    assert first.destroyed
    assert pad.mode is PadMode.GATE
    assert pad.volume == 100
    assert pad.window == (0.0, 10.0)


def test_player_error_leaves_pad_empty(engine, backend, recorder):
    backend.auto_ready = False
    engine.load_clip(0, "broken")
    backend.by_pad[0].notify(PlayerEvent.error("cannot decode"))

    assert engine.pad(0).is_empty
    assert recorder.last(SIGNAL_ERROR) == ('load_failed', "cannot decode")


def test_factory_failure_leaves_pad_empty(engine, backend, recorder):
    backend.fail_load = True
    assert not engine.load_clip(0, "clip")
    assert engine.pad(0).is_empty
    assert recorder.last(SIGNAL_ERROR)[0] == 'load_failed'


def test_stale_notification_after_reload_is_dropped(engine, backend):
    backend.auto_ready = False
    engine.load_clip(0, "a")
    old = backend.by_pad[0]
    engine.load_clip(0, "b")
    new = backend.by_pad[0]

    old.raw_listener(PlayerEvent.ready())
    assert not engine.pad(0).is_ready

    new.fire_ready()
    assert engine.pad(0).is_ready
    assert engine.pad(0).clip_ref == "b"


def test_dispatcher_defers_player_events(engine, backend):
    scheduler = TickScheduler(engine.tick)
    engine.set_dispatcher(scheduler.post)

    engine.load_clip(0, "clip")
    assert not engine.pad(0).is_ready
    assert scheduler.pending == 1

    scheduler.drain()
    assert engine.pad(0).is_ready


# =============================================================================
# Modes
# =============================================================================

def test_gate_trigger_then_release_goes_idle(engine, backend):
    pad = load(engine)
    player = backend.by_pad[0]

    engine.trigger(0, InputSource.KEYBOARD)
    assert pad.is_playing
    assert player.state is PlayerState.PLAYING
    assert player.seeks == [0.0]
    assert engine.state.stack.top == 0

    engine.release(0, InputSource.KEYBOARD)
    assert not pad.is_playing
    assert player.state is PlayerState.PAUSED
    assert len(engine.state.stack) == 0


def test_gate_trigger_alone_keeps_playing(engine):
    pad = load(engine)
    engine.trigger(0)
    engine.tick()
    assert pad.is_playing


def test_oneshot_ignores_release(engine):
    pad = load(engine, mode=PadMode.ONESHOT)
    engine.trigger(0)
    engine.release(0)
    assert pad.is_playing


def test_oneshot_stops_at_trimmed_end(engine, backend):
    pad = load(engine, mode=PadMode.ONESHOT, start=1.0, end=5.0)
    player = backend.by_pad[0]
    engine.trigger(0)

    player.position = 3.0
    engine.tick()
    assert pad.is_playing

    player.position = 4.96
    engine.tick()
    assert not pad.is_playing
    assert player.state is PlayerState.PAUSED
    assert player.position == 1.0
    assert 0 not in engine.state.stack


def test_loop_restarts_at_start_and_stays_playing(engine, backend, recorder):
    pad = load(engine, mode=PadMode.LOOP, start=2.0, end=5.0)
    player = backend.by_pad[0]
    engine.trigger(0)

    for _ in range(3):
        player.position = 4.97
        engine.tick()
        assert pad.is_playing
        assert player.position == 2.0

    assert len(recorder.of(SIGNAL_LOOP_RESTARTED)) == 3


def test_full_duration_window_defers_to_natural_end(engine, backend):
    pad = load(engine, mode=PadMode.ONESHOT)
    player = backend.by_pad[0]
    engine.trigger(0)

    player.position = 9.99
    engine.tick()
    assert pad.is_playing

    player.finish()
    assert not pad.is_playing
    assert 0 not in engine.state.stack


def test_loop_natural_end_restarts(engine, backend):
    pad = load(engine, mode=PadMode.LOOP)
    player = backend.by_pad[0]
    engine.trigger(0)

    player.finish()
    assert pad.is_playing
    assert player.state is PlayerState.PLAYING
    assert player.position == 0.0


def test_player_paused_report_does_not_change_engine_state(engine, backend):
    pad = load(engine)
    player = backend.by_pad[0]
    engine.trigger(0)

    player.notify(PlayerEvent.state_changed(PlayerState.PAUSED))
    assert pad.is_playing


# =============================================================================
# Retrigger
# =============================================================================

def test_retrigger_restarts_from_start(engine, backend, recorder):
    pad = load(engine, mode=PadMode.ONESHOT, start=1.0)
    player = backend.by_pad[0]
    engine.trigger(0)
    player.position = 4.0

    engine.trigger(0)
    assert pad.is_playing
    assert player.position == 1.0
    assert len(recorder.of(SIGNAL_PLAYBACK_STARTED)) == 2


def test_retrigger_off_toggles_and_resumes_without_seek(engine, backend):
    pad = load(engine, mode=PadMode.ONESHOT)
    engine.toggle_retrigger(0)
    player = backend.by_pad[0]

    engine.trigger(0)
    assert pad.is_playing
    player.position = 3.0
    player.calls.clear()

    engine.trigger(0)
    assert not pad.is_playing
    assert 'pause' in player.calls
    assert player.seeks == []

    engine.trigger(0)
    assert pad.is_playing
    assert player.seeks == []
    assert player.position == 3.0


def test_retrigger_off_resume_near_end_seeks(engine, backend):
    pad = load(engine, mode=PadMode.ONESHOT, start=1.0, end=5.0)
    engine.toggle_retrigger(0)
    player = backend.by_pad[0]

    engine.trigger(0)
    engine.trigger(0)
    player.position = 4.85
    player.calls.clear()

    engine.trigger(0)
    assert pad.is_playing
    assert player.seeks == [1.0]


def test_retrigger_off_after_player_ended_seeks(engine, backend):
    pad = load(engine, mode=PadMode.ONESHOT)
    engine.toggle_retrigger(0)
    player = backend.by_pad[0]

    engine.trigger(0)
    player.finish()
    assert not pad.is_playing
    player.calls.clear()

    engine.trigger(0)
    assert player.seeks == [0.0]


# =============================================================================
# Copy / Delete
# =============================================================================

def test_copy_pad_duplicates_settings_with_fresh_handle(engine, backend):
    source = load(engine, 0, mode=PadMode.LOOP, start=2.0, end=5.0)
    engine.set_volume(0, 60)

    assert engine.copy_pad(0, 1)
    target = engine.pad(1)

    assert target.is_ready
    assert target.clip_ref == "clip"
    assert target.window == (2.0, 5.0)
    assert target.mode is PadMode.LOOP
    assert target.volume == 60
    assert backend.by_pad[1] is not backend.by_pad[0]
    assert source.window == (2.0, 5.0)
    assert source.player is backend.by_pad[0]


def test_copy_onto_itself_is_ignored(engine, backend):
    load(engine, 0)
    assert not engine.copy_pad(0, 0)
    assert len(backend.players) == 1


def test_copy_from_empty_pad_is_ignored(engine):
    assert not engine.copy_pad(3, 4)
    assert engine.pad(4).is_empty


def test_delete_pad_clears_and_destroys(engine, backend, recorder):
    pad = load(engine, 2)
    player = backend.by_pad[2]
    engine.trigger(2)

    assert engine.delete_pad(2)
    assert pad.is_empty
    assert not pad.is_playing
    assert player.destroyed
    assert len(engine.state.stack) == 0
    assert engine.selected is None
    assert recorder.of(SIGNAL_PAD_CLEARED) == [(2,)]


# =============================================================================
# Input edge cases
# =============================================================================

def test_empty_pad_pointer_press_requests_load(engine, recorder):
    assert not engine.trigger(5, InputSource.POINTER)
    assert recorder.of(SIGNAL_LOAD_REQUESTED) == [(5,)]
    assert recorder.of(SIGNAL_TRIGGER) == []


def test_empty_pad_keyboard_press_does_nothing(engine, recorder):
    assert not engine.trigger(5, InputSource.KEYBOARD)
    assert recorder.of(SIGNAL_LOAD_REQUESTED) == []


def test_trigger_before_ready_is_ignored(engine, backend):
    backend.auto_ready = False
    engine.load_clip(0, "clip")
    assert not engine.trigger(0)
    assert not engine.pad(0).is_playing


def test_out_of_range_index_is_ignored(engine):
    assert not engine.trigger(16)
    assert not engine.release(-1)
    assert not engine.load_clip(99, "clip")


# =============================================================================
# Tick / Selection / Full Screen
# =============================================================================

def test_tick_updates_playhead_for_selected_pad_only(engine, backend, recorder):
    load(engine, 0)
    load(engine, 1)
    engine.trigger(0)
    engine.trigger(1)
    engine.select(0)
    backend.by_pad[0].position = 5.0
    backend.by_pad[1].position = 2.0
    recorder.clear()

    engine.tick()
    assert recorder.of(SIGNAL_PLAYHEAD) == [(0, 0.5)]
    assert engine.state.playhead == 0.5


def test_fullscreen_without_clip_reports_error(engine, recorder):
    assert not engine.enter_fullscreen()
    assert not engine.fullscreen
    assert recorder.last(SIGNAL_ERROR)[0] == 'no_clip'


def test_fullscreen_selects_first_loaded_pad(engine):
    load(engine, 2)
    load(engine, 7)
    engine.select(None)

    assert engine.enter_fullscreen()
    assert engine.selected == 2
    engine.exit_fullscreen()
    assert not engine.fullscreen


def test_fullscreen_layers_keep_background_playing(engine, backend):
    load(engine, 0)
    load(engine, 1)
    engine.trigger(0)
    engine.trigger(1)
    engine.enter_fullscreen()

    assert engine.layers() == (
        LayerHint(index=0, z_index=3000, opacity=1.0, interactive=False),
        LayerHint(index=1, z_index=3001, opacity=0.999, interactive=True),
    )
    assert backend.by_pad[0].state is PlayerState.PLAYING


def test_stop_all_pauses_everything(engine, backend):
    load(engine, 0, mode=PadMode.LOOP)
    load(engine, 1, mode=PadMode.ONESHOT)
    engine.trigger(0)
    engine.trigger(1)

    engine.stop_all()
    assert not engine.any_playing
    assert len(engine.state.stack) == 0
    assert backend.by_pad[0].state is PlayerState.PAUSED
    assert backend.by_pad[1].state is PlayerState.PAUSED


# =============================================================================
# Settings
# =============================================================================

def test_settings_clamp_and_snap(engine, backend):
    load(engine)
    engine.set_volume(0, 250)
    engine.set_playback_rate(0, 1.3)
    assert engine.pad(0).volume == 100
    assert engine.pad(0).playback_rate == 1.25
    assert backend.by_pad[0].rate == 1.25


def test_cycle_mode(engine):
    pad = load(engine)
    engine.cycle_mode(0)
    assert pad.mode is PadMode.ONESHOT
    engine.cycle_mode(0)
    engine.cycle_mode(0)
    assert pad.mode is PadMode.GATE


def test_settings_on_empty_pad_are_noops(engine):
    assert not engine.set_volume(3, 10)
    assert not engine.set_start(3, 1.0)
    assert not engine.cycle_mode(3)


# =============================================================================
# Clipboard
# =============================================================================

def test_paste_loads_into_first_empty_pad(engine):
    load(engine, 0)
    engine.select(None)

    assert engine.paste(VIDEO_URL) == 1
    assert engine.pad(1).clip_ref == "dQw4w9WgXcQ"


def test_paste_replaces_selected_pad(engine):
    load(engine, 4)
    assert engine.selected == 4
    assert engine.paste(VIDEO_URL) == 4
    assert engine.pad(4).clip_ref == "dQw4w9WgXcQ"


def test_paste_invalid_text_reports_error(engine, recorder):
    assert engine.paste("just some words") is None
    assert recorder.last(SIGNAL_ERROR)[0] == 'invalid_clip'
    assert all(p.is_empty for p in engine.pads)


def test_paste_without_empty_pad_reports_error(engine, recorder):
    for i in range(16):
        engine.load_clip(i, f"clip{i}")
    engine.select(None)

    assert engine.paste(VIDEO_URL) is None
    assert recorder.last(SIGNAL_ERROR)[0] == 'no_empty_pad'


# =============================================================================
# Sharing
# =============================================================================

def test_serialize_restore_serialize_is_idempotent(engine):
    load(engine, 0, mode=PadMode.LOOP, start=1.234, end=5.678)
    engine.set_volume(0, 40)
    engine.set_playback_rate(0, 1.5)
    engine.toggle_retrigger(0)
    load(engine, 9, clip="dQw4w9WgXcQ")
    encoded = engine.serialize()

    other = PadEngine(FakeBackend())
    assert other.capture_shared_state(encoded)
    restored = other.serialize()
    assert restored == encoded

    other_again = PadEngine(FakeBackend())
    other_again.capture_shared_state(restored)
    assert other_again.serialize() == restored


def test_restore_does_not_select_or_publish(backend):
    source = PadEngine(FakeBackend())
    load(source, 3)
    encoded = source.serialize()

    engine = PadEngine(backend)
    assert engine.capture_shared_state(encoded)
    assert engine.pad(3).is_ready
    assert engine.selected is None


def test_restore_clamps_window_to_real_duration(backend):
    source = PadEngine(FakeBackend(duration=30.0))
    load(source, 0, start=20.0, end=25.0)
    encoded = source.serialize()

    engine = PadEngine(backend)          # clips are 10 s here
    engine.capture_shared_state(encoded)
    pad = engine.pad(0)
    assert pad.end_time == 10.0
    assert pad.start_time <= pad.end_time - 0.05


def test_pending_restore_waits_for_backend(backend):
    source = PadEngine(FakeBackend())
    load(source, 0)
    encoded = source.serialize()

    engine = PadEngine(backend, backend_ready=False)
    assert engine.capture_shared_state(encoded)
    assert backend.players == []

    engine.mark_backend_ready()
    assert engine.pad(0).is_ready


def test_manual_load_cancels_pending_restore(backend):
    source = PadEngine(FakeBackend())
    load(source, 0)
    encoded = source.serialize()

    engine = PadEngine(backend, backend_ready=False)
    engine.capture_shared_state(encoded)
    engine.load_clip(3, "mine")
    engine.mark_backend_ready()

    assert engine.pad(0).is_empty
    assert engine.pad(3).clip_ref == "mine"
    assert engine.state.pending_restore is None


def test_malformed_shared_state_is_ignored(engine):
    assert not engine.capture_shared_state("!!definitely not base64!!")
    assert all(p.is_empty for p in engine.pads)
