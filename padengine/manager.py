# padengine/manager.py
"""
SamplerManager - Top-level coordinator.

Wires the engine to the tick scheduler, the bundled audio backend, the input
normalizers and MIDI.
"""

from __future__ import annotations
from typing import Iterable, List, Optional
import logging

from .audio.output import AudioOutput
from .audio.sample_player import SampleLibrary, sample_player_factory
from .core.config import EngineConfig
from .core.signal import SignalBridge
from .engine import PadEngine
from .input import KeyboardInput, MidiPadInput, PointerInput, RateKnob, TimelineDrag, VolumeKnob
from .midi.manager import MidiManager
from .player.base import PlayerFactory
from .time.scheduler import TickScheduler

logger = logging.getLogger(__name__)


class SamplerManager:
    """
    Top-level coordinator for the pad sampler.

    Usage:
        sampler = SamplerManager()
        sampler.load_files(["kick.wav", "snare.wav"])
        sampler.start(midi=True)
        ...
        print(sampler.share_state())
        sampler.stop()

    Pass `player_factory` to run the engine against another backend; the
    bundled audio output is then not created.
    """

    def __init__(self, config: EngineConfig = None, player_factory: PlayerFactory = None):
        self.config = config or EngineConfig()
        self.bridge = SignalBridge()

        self.library: Optional[SampleLibrary] = None
        self.output: Optional[AudioOutput] = None
        if player_factory is None:
            self.library = SampleLibrary(sample_rate=self.config.sample_rate)
            self.output = AudioOutput(self.config.sample_rate, self.config.block_size)
            player_factory = sample_player_factory(self.library, self.output)

        self.engine = PadEngine(player_factory, self.bridge, self.config)
        self.scheduler = TickScheduler(self.engine.tick, interval=self.config.tick_interval)
        self.engine.set_dispatcher(self.scheduler.post)

        # Input: UI calls run inline until the scheduler thread starts, then queue
        call = self.scheduler.call
        self.keyboard = KeyboardInput(self.engine, dispatch=call)
        self.pointer = PointerInput(self.engine, dispatch=call)
        self.volume_knob = VolumeKnob(self.engine, dispatch=call)
        self.rate_knob = RateKnob(self.engine, dispatch=call)

        self.midi = MidiManager(self.bridge)
        self.midi_input = MidiPadInput(self.engine, self.bridge, dispatch=self.scheduler.post)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, midi: bool = False):
        """Start audio output, optionally MIDI, and the scheduler thread."""
        if self.output is not None:
            self.output.start()
        if midi:
            self.midi.enable()
        self.scheduler.start()

    def run(self, duration: float = None):
        """Run the scheduler on the calling thread (blocks)."""
        if self.output is not None:
            self.output.start()
        self.scheduler.run(duration=duration)

    def stop(self):
        self.scheduler.stop()
        self.scheduler.drain()
        self.midi.disable()
        self.engine.shutdown()
        if self.output is not None:
            self.output.stop()

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    # =========================================================================
    # Loading / Sharing
    # =========================================================================

    def load_files(self, paths: Iterable[str]) -> Optional[List[int]]:
        """
        Load files onto consecutive empty pads. Returns the pads used, or None
        when the scheduler thread is running and the loads were queued.
        """
        return self.scheduler.call(self._load_files, list(paths))

    def _load_files(self, paths: List[str]) -> List[int]:
        used = []
        for path in paths:
            index = self.engine.pads.first_empty()
            if index is None:
                logger.warning(f"No empty pad left for {path!r}")
                break
            if self.engine.load_text(index, path):
                used.append(index)
        return used

    def share_state(self) -> str:
        return self.engine.serialize()

    def open_shared(self, text: str) -> Optional[bool]:
        """Restore pads from a share string (applied once the backend is ready)."""
        return self.scheduler.call(self.engine.capture_shared_state, text)

    def timeline(self, width: float) -> TimelineDrag:
        """Drag controller for a timeline view `width` pixels wide."""
        return TimelineDrag(self.engine, width, dispatch=self.scheduler.call)
