# padengine/engine.py
"""
PadEngine - Owns the engine state and runs every pad operation.

All mutation happens through this class, on one logical thread: input
handlers, scheduler ticks and player notifications (routed through the
dispatcher installed with `set_dispatcher`).

Usage:
    engine = PadEngine(player_factory)
    engine.load_clip(0, "/samples/kick.wav")
    engine.trigger(0, InputSource.KEYBOARD)
    engine.tick()                       # normally driven by TickScheduler
    link = engine.serialize()
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional
import logging

from .codec import PadRecord, decode_state, encode_state
from .core.config import EngineConfig
from .core.errors import ClipResolveError
from .core.signal import (
    SignalBridge,
    SIGNAL_TRIGGER, SIGNAL_RELEASE, SIGNAL_LOAD_REQUESTED,
    SIGNAL_PAD_LOADED, SIGNAL_PAD_CLEARED, SIGNAL_PAD_CHANGED,
    SIGNAL_PLAYBACK_STARTED, SIGNAL_PLAYBACK_STOPPED, SIGNAL_LOOP_RESTARTED,
    SIGNAL_TRANSPORT_CHANGED, SIGNAL_PLAYHEAD,
    SIGNAL_STACK_CHANGED, SIGNAL_SELECTION_CHANGED, SIGNAL_FULLSCREEN_CHANGED,
    SIGNAL_STATE_CHANGED, SIGNAL_ERROR,
)
from .pads import trim
from .pads.machine import (
    EffectKind, PadEventKind, PadStatus, TransitionContext,
    boundary_hit, transition,
)
from .pads.pad import Pad, PadMode, PadRegistry, clamp_volume, snap_rate
from .pads.stack import ActiveStack, LayerHint
from .player.base import (
    MediaPlayer, PlayerEvent, PlayerEventKind, PlayerFactory, PlayerOptions, PlayerState,
)
from .resolver import resolve_clip_ref

logger = logging.getLogger(__name__)


class InputSource(Enum):
    KEYBOARD = auto()
    POINTER = auto()
    MIDI = auto()
    API = auto()


class LoadKind(Enum):
    FRESH = auto()      # defaults reset, end = duration on ready
    COPY = auto()       # settings copied from a sibling pad
    RESTORE = auto()    # settings from a share string


@dataclass
class PendingRestore:
    generation: int
    records: List[Optional[PadRecord]]


@dataclass
class EngineState:
    pads: PadRegistry
    stack: ActiveStack = field(default_factory=ActiveStack)
    selected: Optional[int] = None
    fullscreen: bool = False
    playhead: float = 0.0

    # Cancellation of stale restores: every manual load bumps the generation
    generation: int = 0
    pending_restore: Optional[PendingRestore] = None
    backend_ready: bool = True

    load_kinds: Dict[int, LoadKind] = field(default_factory=dict)


Dispatcher = Callable[..., Any]


def call_now(fn: Callable, *args):
    return fn(*args)


class PadEngine:

    def __init__(
        self,
        player_factory: PlayerFactory,
        signals: SignalBridge = None,
        config: EngineConfig = None,
        backend_ready: bool = True,
    ):
        self.config = config or EngineConfig()
        self.signals = signals or SignalBridge()
        self.state = EngineState(
            pads=PadRegistry(self.config.pad_count),
            backend_ready=backend_ready,
        )
        self._player_factory = player_factory
        self._dispatch: Dispatcher = call_now

    def set_dispatcher(self, dispatch: Optional[Dispatcher]):
        """Route player notifications through `dispatch` (e.g. a scheduler queue)."""
        self._dispatch = dispatch or call_now

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def pads(self) -> PadRegistry:
        return self.state.pads

    def pad(self, index: int) -> Pad:
        return self.state.pads[index]

    @property
    def selected(self) -> Optional[int]:
        return self.state.selected

    @property
    def selected_pad(self) -> Optional[Pad]:
        return self.state.pads.get(self.state.selected)

    @property
    def any_playing(self) -> bool:
        return self.state.pads.any_playing

    @property
    def fullscreen(self) -> bool:
        return self.state.fullscreen

    def layers(self) -> tuple:
        return self.state.stack.render(
            fullscreen=self.state.fullscreen,
            z_base=self.config.z_base,
            top_opacity=self.config.top_layer_opacity,
        )

    # =========================================================================
    # Loading / Clearing
    # =========================================================================

    def load_clip(self, index: int, clip_ref: str) -> bool:
        """Fresh load: defaults are reset and any pending restore is cancelled."""
        pad = self.state.pads.get(index)
        if pad is None or not clip_ref:
            return False

        self._cancel_pending_restore("manual load")
        self._teardown(pad)
        pad.reset(self.config.default_volume, self.config.default_rate)
        pad.clip_ref = clip_ref
        return self._open_player(pad, LoadKind.FRESH)

    def load_text(self, index: int, text: str) -> bool:
        """Resolve user text (dropped or typed) and fresh-load it."""
        try:
            clip_ref = resolve_clip_ref(text)
        except ClipResolveError as e:
            logger.info(f"Rejected clip reference: {e}")
            self.signals.emit(SIGNAL_ERROR, 'invalid_clip', str(e))
            return False
        return self.load_clip(index, clip_ref)

    def copy_pad(self, source: int, target: int) -> bool:
        """Copy every setting of `source` onto `target` and reload it."""
        if source == target:
            return False
        src = self.state.pads.get(source)
        dst = self.state.pads.get(target)
        if src is None or dst is None or src.is_empty:
            return False

        settings = src.settings()
        self._teardown(dst)
        dst.reset(self.config.default_volume, self.config.default_rate)
        dst.apply_settings(settings)
        ok = self._open_player(dst, LoadKind.COPY)
        self.publish_state()
        return ok

    def restore_pad(self, index: int, record: PadRecord) -> bool:
        pad = self.state.pads.get(index)
        if pad is None:
            return False
        self._teardown(pad)
        pad.reset(self.config.default_volume, self.config.default_rate)
        pad.apply_settings(record.to_settings())
        return self._open_player(pad, LoadKind.RESTORE)

    def delete_pad(self, index: int) -> bool:
        pad = self.state.pads.get(index)
        if pad is None:
            return False

        self._teardown(pad)
        pad.reset(self.config.default_volume, self.config.default_rate)
        self.state.load_kinds.pop(index, None)
        logger.info(f"Pad {index}: cleared")

        if self.state.selected == index:
            self.select(None)
        self.signals.emit(SIGNAL_PAD_CLEARED, index)
        self.signals.emit(SIGNAL_TRANSPORT_CHANGED, self.any_playing)
        self.publish_state()
        return True

    def _teardown(self, pad: Pad):
        """Destroy the handle; afterwards no notification of it is honored."""
        was_playing = pad.is_playing
        pad.load_token += 1
        if pad.player is not None:
            try:
                pad.player.destroy()
            except Exception as e:
                logger.error(f"Pad {pad.index}: error destroying player: {e}")
        pad.player = None
        pad.ready = False
        pad.is_playing = False

        if self.state.stack.remove(pad.index):
            self._render_stack()
        if was_playing:
            self.signals.emit(SIGNAL_PLAYBACK_STOPPED, pad.index)

    def _open_player(self, pad: Pad, kind: LoadKind) -> bool:
        token = pad.load_token
        self.state.load_kinds[pad.index] = kind

        try:
            player = self._player_factory(pad.index, self._make_listener(pad.index, token))
        except Exception as e:
            logger.error(f"Pad {pad.index}: cannot create player: {e}")
            return self._fail_load(pad, str(e))

        pad.player = player
        options = PlayerOptions(
            start_time=pad.start_time,
            volume=pad.volume,
            playback_rate=pad.playback_rate,
        )
        logger.info(f"Pad {pad.index}: loading {pad.clip_ref!r} ({kind.name.lower()})")
        try:
            player.load(pad.clip_ref, options)
        except Exception as e:
            logger.error(f"Pad {pad.index}: load failed: {e}")
            return self._fail_load(pad, str(e))
        return True

    def _fail_load(self, pad: Pad, message: str) -> bool:
        self._teardown(pad)
        pad.reset(self.config.default_volume, self.config.default_rate)
        self.state.load_kinds.pop(pad.index, None)
        self.signals.emit(SIGNAL_PAD_CLEARED, pad.index)
        self.signals.emit(SIGNAL_ERROR, 'load_failed', message)
        return False

    # =========================================================================
    # Player Notifications
    # =========================================================================

    def _make_listener(self, index: int, token: int) -> Callable[[PlayerEvent], None]:
        def listener(event: PlayerEvent):
            self._dispatch(lambda: self.handle_player_event(index, token, event))
        return listener

    def handle_player_event(self, index: int, token: int, event: PlayerEvent):
        pad = self.state.pads.get(index)
        if pad is None or pad.load_token != token or pad.player is None:
            logger.debug(f"Pad {index}: dropping stale {event.kind.name} notification")
            return

        if event.kind is PlayerEventKind.READY:
            self._on_ready(pad)
        elif event.kind is PlayerEventKind.ERROR:
            logger.warning(f"Pad {index}: player error: {event.message}")
            self._fail_load(pad, event.message or "player error")
            self.publish_state()
        elif event.state is PlayerState.ENDED:
            self._dispatch_event(pad, PadEventKind.NATURAL_END)
        else:
            # Engine state is authoritative for PLAYING/PAUSED
            logger.debug(f"Pad {index}: player reports {event.state.name if event.state else None}")

    def _on_ready(self, pad: Pad):
        kind = self.state.load_kinds.pop(pad.index, LoadKind.FRESH)
        player = pad.player

        pad.duration = max(0.0, float(player.get_duration()))
        pad.ready = True
        if kind is LoadKind.FRESH:
            pad.start_time = 0.0
            pad.end_time = pad.duration
        elif trim.clamp_window(pad, self.config.epsilon):
            logger.debug(
                f"Pad {pad.index}: window clamped to "
                f"{trim.format_time(pad.start_time, precise=True)}-{trim.format_time(pad.end_time, precise=True)}"
            )
        pad.title = player.title or pad.title

        self._apply_levels(pad)
        logger.info(f"Pad {pad.index}: ready ({trim.format_time(pad.duration)}) {pad.title!r}")
        self.signals.emit(SIGNAL_PAD_LOADED, pad.index)

        if kind is not LoadKind.RESTORE:
            self.select(pad.index)
            self.publish_state()

    def _apply_levels(self, pad: Pad):
        if pad.player is None:
            return
        pad.player.set_volume(pad.volume)
        pad.player.set_playback_rate(pad.playback_rate)

    # =========================================================================
    # Trigger / Release
    # =========================================================================

    def trigger(self, index: int, source: InputSource = InputSource.API) -> bool:
        pad = self.state.pads.get(index)
        if pad is None:
            return False
        if pad.is_empty:
            if source is InputSource.POINTER:
                self.signals.emit(SIGNAL_LOAD_REQUESTED, index)
            return False

        self.signals.emit(SIGNAL_TRIGGER, index, source)
        if not pad.is_ready:
            logger.debug(f"Pad {index}: trigger ignored, player not ready")
            return False

        toggling_off = pad.is_playing and not pad.retrigger
        if not toggling_off:
            self.select(index)
        return self._dispatch_event(pad, PadEventKind.TRIGGER)

    def release(self, index: int, source: InputSource = InputSource.API) -> bool:
        pad = self.state.pads.get(index)
        if pad is None or pad.is_empty:
            return False
        self.signals.emit(SIGNAL_RELEASE, index, source)
        if not pad.is_ready:
            return False
        return self._dispatch_event(pad, PadEventKind.RELEASE)

    def stop_all(self):
        """Pause every pad (transport stop button / space bar)."""
        for pad in self.state.pads:
            if pad.player is None:
                continue
            pad.player.pause()
            if pad.is_playing:
                pad.is_playing = False
                self.signals.emit(SIGNAL_PLAYBACK_STOPPED, pad.index)
        if len(self.state.stack):
            self.state.stack.clear()
            self._render_stack()
        self.signals.emit(SIGNAL_TRANSPORT_CHANGED, False)

    def _dispatch_event(self, pad: Pad, kind: PadEventKind) -> bool:
        player = pad.player
        status = PadStatus.PLAYING if pad.is_playing else PadStatus.IDLE
        ctx = TransitionContext(
            mode=pad.mode,
            retrigger=pad.retrigger,
            start_time=pad.start_time,
            end_time=pad.end_time,
            position=player.get_current_time(),
            player_ended=player.get_state() is PlayerState.ENDED,
            resume_threshold=self.config.resume_threshold,
        )
        result = transition(status, kind, ctx)
        if not result.effects:
            return False

        self._apply_effects(pad, result.effects)
        was_playing = pad.is_playing
        pad.is_playing = result.status is PadStatus.PLAYING
        logger.debug(
            f"Pad {pad.index}: {status.name} --{kind.name}--> {result.status.name} {list(result.effects)}"
        )

        if pad.is_playing:
            if was_playing and kind is not PadEventKind.TRIGGER:
                self.signals.emit(SIGNAL_LOOP_RESTARTED, pad.index)
            else:
                self.signals.emit(SIGNAL_PLAYBACK_STARTED, pad.index)
        elif was_playing:
            self.signals.emit(SIGNAL_PLAYBACK_STOPPED, pad.index)
        if was_playing != pad.is_playing:
            self.signals.emit(SIGNAL_TRANSPORT_CHANGED, self.any_playing)
        return True

    def _apply_effects(self, pad: Pad, effects):
        player = pad.player
        stack_changed = False
        for effect in effects:
            if effect.kind is EffectKind.APPLY_LEVELS:
                self._apply_levels(pad)
            elif effect.kind is EffectKind.SEEK:
                player.seek(effect.time, True)
            elif effect.kind is EffectKind.PLAY:
                player.play()
            elif effect.kind is EffectKind.PAUSE:
                player.pause()
            elif effect.kind is EffectKind.PUSH_STACK:
                self.state.stack.push(pad.index)
                stack_changed = True
            elif effect.kind is EffectKind.REMOVE_STACK:
                stack_changed = self.state.stack.remove(pad.index) or stack_changed
        if stack_changed:
            self._render_stack()

    # =========================================================================
    # Scheduler Tick
    # =========================================================================

    def tick(self):
        """One synchronous sweep over the pads that were playing at its start."""
        for pad in self.state.pads.playing():
            if not pad.is_ready:
                continue
            position = pad.player.get_current_time()

            if pad.index == self.state.selected and pad.duration > 0:
                self.state.playhead = position / pad.duration
                self.signals.emit(SIGNAL_PLAYHEAD, pad.index, self.state.playhead)

            if boundary_hit(
                position,
                pad.end_time,
                pad.duration,
                epsilon=self.config.epsilon,
                full_duration_tolerance=self.config.full_duration_tolerance,
            ):
                self._dispatch_event(pad, PadEventKind.TICK_BOUNDARY_HIT)

    # =========================================================================
    # Selection / Full Screen
    # =========================================================================

    def select(self, index: Optional[int]):
        if index is not None and not self.state.pads.is_valid(index):
            return
        self.state.selected = index
        if index is None:
            self.state.playhead = 0.0
        self.signals.emit(SIGNAL_SELECTION_CHANGED, index)

    def enter_fullscreen(self) -> bool:
        if self.state.selected is None:
            first = self.state.pads.first_loaded()
            if first is None:
                self.signals.emit(SIGNAL_ERROR, 'no_clip', "Load a clip first")
                return False
            self.select(first)
        self.state.fullscreen = True
        self.signals.emit(SIGNAL_FULLSCREEN_CHANGED, True)
        self._render_stack()
        return True

    def exit_fullscreen(self):
        if not self.state.fullscreen:
            return
        self.state.fullscreen = False
        self.signals.emit(SIGNAL_FULLSCREEN_CHANGED, False)
        self._render_stack()

    def _render_stack(self):
        layers = self.layers()
        self.signals.emit(SIGNAL_STACK_CHANGED, layers)

    # =========================================================================
    # Pad Settings
    # =========================================================================

    def _loaded(self, index: int) -> Optional[Pad]:
        pad = self.state.pads.get(index)
        if pad is None or pad.is_empty:
            return None
        return pad

    def set_mode(self, index: int, mode: PadMode) -> bool:
        pad = self._loaded(index)
        if pad is None:
            return False
        pad.mode = PadMode.parse(mode)
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        self.publish_state()
        return True

    def cycle_mode(self, index: int) -> bool:
        pad = self._loaded(index)
        if pad is None:
            return False
        return self.set_mode(index, pad.mode.next())

    def toggle_retrigger(self, index: int) -> bool:
        pad = self._loaded(index)
        if pad is None:
            return False
        pad.retrigger = not pad.retrigger
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        self.publish_state()
        return True

    def set_volume(self, index: int, volume, publish: bool = False) -> bool:
        pad = self._loaded(index)
        if pad is None:
            return False
        pad.volume = clamp_volume(volume)
        if pad.player is not None:
            pad.player.set_volume(pad.volume)
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        if publish:
            self.publish_state()
        return True

    def set_playback_rate(self, index: int, rate: float, publish: bool = False) -> bool:
        pad = self._loaded(index)
        if pad is None:
            return False
        pad.playback_rate = snap_rate(rate, self.config.playback_rates)
        if pad.player is not None:
            pad.player.set_playback_rate(pad.playback_rate)
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        if publish:
            self.publish_state()
        return True

    # =========================================================================
    # Trim
    # =========================================================================

    def _trimmable(self, index: int) -> Optional[Pad]:
        pad = self._loaded(index)
        if pad is None or pad.duration <= 0:
            return None
        return pad

    def set_start(self, index: int, seconds: float) -> bool:
        pad = self._trimmable(index)
        if pad is None:
            return False
        trim.set_start(pad, seconds, self.config.epsilon)
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        return True

    def set_end(self, index: int, seconds: float) -> bool:
        pad = self._trimmable(index)
        if pad is None:
            return False
        trim.set_end(pad, seconds, self.config.epsilon)
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        return True

    def shift_range(self, index: int, delta: float) -> bool:
        pad = self._trimmable(index)
        if pad is None:
            return False
        trim.shift_range(pad, delta)
        self.signals.emit(SIGNAL_PAD_CHANGED, index)
        return True

    # =========================================================================
    # Clipboard
    # =========================================================================

    def paste(self, text: str) -> Optional[int]:
        """Load pasted text into the selected pad, else the first empty one."""
        try:
            clip_ref = resolve_clip_ref(text)
        except ClipResolveError as e:
            self.signals.emit(SIGNAL_ERROR, 'invalid_clip', str(e))
            return None

        target = self.state.selected
        if target is None:
            target = self.state.pads.first_empty()
        if target is None:
            self.signals.emit(SIGNAL_ERROR, 'no_empty_pad', "No empty pads available to paste into")
            return None
        self.load_clip(target, clip_ref)
        return target

    # =========================================================================
    # Sharing
    # =========================================================================

    def serialize(self) -> str:
        return encode_state(self.state.pads)

    def publish_state(self) -> str:
        encoded = self.serialize()
        self.signals.emit(SIGNAL_STATE_CHANGED, encoded)
        return encoded

    def capture_shared_state(self, encoded: str) -> bool:
        """Queue a share string for restore; applied once the backend is ready."""
        records = decode_state(
            encoded,
            pad_count=self.config.pad_count,
            rates=self.config.playback_rates,
        )
        if records is None:
            return False
        self.state.pending_restore = PendingRestore(self.state.generation, records)
        self.try_apply_pending()
        return True

    def mark_backend_ready(self):
        self.state.backend_ready = True
        self.try_apply_pending()

    def try_apply_pending(self) -> bool:
        pending = self.state.pending_restore
        if pending is None or not self.state.backend_ready:
            return False
        self.state.pending_restore = None

        if pending.generation != self.state.generation:
            logger.info("Discarding stale shared state")
            return False

        restored = 0
        for index, record in enumerate(pending.records):
            if record is not None and self.restore_pad(index, record):
                restored += 1
        logger.info(f"Restored {restored} pads from shared state")
        return True

    def _cancel_pending_restore(self, reason: str):
        self.state.generation += 1
        if self.state.pending_restore is not None:
            logger.info(f"Cancelling pending shared state ({reason})")
            self.state.pending_restore = None

    # =========================================================================
    # Shutdown
    # =========================================================================

    def shutdown(self):
        for pad in self.state.pads:
            self._teardown(pad)
        self.state.stack.clear()
