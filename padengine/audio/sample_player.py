"""
SamplePlayer - MediaPlayer backend for local audio files.

Files are decoded once with soundfile into a shared SampleLibrary, resampled
to the output rate and converted to stereo. Each player keeps a fractional
read position that advances by `rate` frames per output frame.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional
import logging
import os
import threading
import numpy as np

from ..core.errors import PadEngineError
from ..player.base import (
    MediaPlayer, PlayerEvent, PlayerFactory, PlayerListener, PlayerOptions, PlayerState,
)
from .output import AudioOutput

logger = logging.getLogger(__name__)

try:
    import soundfile as sf
    SOUNDFILE_AVAILABLE = True
except (ImportError, OSError):
    SOUNDFILE_AVAILABLE = False


@dataclass
class Sample:
    """A decoded clip, stereo float32 of shape (frames, 2)."""
    name: str
    data: np.ndarray
    sample_rate: int

    @property
    def num_frames(self) -> int:
        return self.data.shape[0]

    @property
    def duration(self) -> float:
        return self.num_frames / self.sample_rate


def _to_stereo(data: np.ndarray) -> np.ndarray:
    if data.ndim == 1:
        return np.column_stack([data, data])
    if data.shape[1] == 1:
        return np.repeat(data, 2, axis=1)
    return data[:, :2]


def _resample(data: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Simple linear resampling."""
    if src_rate == dst_rate or len(data) < 2:
        return data

    new_length = int(len(data) * dst_rate / src_rate)
    indices = np.linspace(0, len(data) - 1, new_length)
    result = np.zeros((new_length, data.shape[1]), dtype=np.float32)
    for ch in range(data.shape[1]):
        result[:, ch] = np.interp(indices, np.arange(len(data)), data[:, ch])
    return result


class SampleLibrary:
    """
    Decoded clips keyed by path (or by name for in-memory samples).

    Usage:
        library = SampleLibrary(sample_rate=44100)
        library.get("/samples/kick.wav")
        library.add("tone", np.sin(...))
    """

    def __init__(self, sample_rate: int = 44100):
        self.sample_rate = sample_rate
        self._samples: Dict[str, Sample] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._samples

    def add(self, name: str, data: np.ndarray, sample_rate: int = None) -> Sample:
        """Register a sample from a numpy array."""
        sr = sample_rate or self.sample_rate
        data = _to_stereo(np.asarray(data, dtype=np.float32))
        data = _resample(data, sr, self.sample_rate).astype(np.float32)

        sample = Sample(name=name, data=data, sample_rate=self.sample_rate)
        with self._lock:
            self._samples[name] = sample
        return sample

    def get(self, name: str) -> Sample:
        with self._lock:
            sample = self._samples.get(name)
        if sample is not None:
            return sample
        return self._decode(name)

    def _decode(self, path: str) -> Sample:
        if not SOUNDFILE_AVAILABLE:
            raise PadEngineError("soundfile not available, cannot decode audio files")
        if not os.path.isfile(path):
            raise PadEngineError(f"File not found: {path}")

        data, sr = sf.read(path, dtype='float32', always_2d=True)
        sample = self.add(path, data, sr)
        logger.info(f"SampleLibrary: decoded {os.path.basename(path)} ({sample.duration:.2f}s)")
        return sample


class SamplePlayer(MediaPlayer):
    """One pad's playback head over a library sample."""

    def __init__(
        self,
        listener: PlayerListener,
        library: SampleLibrary,
        output: AudioOutput = None,
    ):
        super().__init__(listener)
        self._library = library
        self._output = output
        self._lock = threading.Lock()

        self._sample: Optional[Sample] = None
        self._position = 0.0            # in frames, fractional
        self._state = PlayerState.UNSTARTED
        self._gain = 1.0
        self._rate = 1.0
        self._title = ""
        self._destroyed = False

    @property
    def title(self) -> str:
        return self._title

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, clip_ref: str, options: PlayerOptions) -> None:
        self._gain = max(0, min(100, options.volume)) / 100.0
        self._rate = options.playback_rate
        self._title = os.path.splitext(os.path.basename(clip_ref))[0]

        if options.background:
            thread = threading.Thread(
                target=self._load,
                args=(clip_ref, options.start_time),
                name=f"SamplePlayer-load-{self._title}",
                daemon=True,
            )
            thread.start()
        else:
            self._load(clip_ref, options.start_time)

    def _load(self, clip_ref: str, start_time: float):
        try:
            sample = self._library.get(clip_ref)
        except Exception as e:
            logger.error(f"SamplePlayer: cannot load {clip_ref!r}: {e}")
            self.notify(PlayerEvent.error(str(e)))
            return

        with self._lock:
            if self._destroyed:
                return
            self._sample = sample
            self._position = max(0.0, min(start_time, sample.duration)) * sample.sample_rate
            # Registered under the lock so a concurrent destroy() always removes it
            if self._output is not None:
                self._output.add(self)

        self.notify(PlayerEvent.ready())

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def play(self) -> None:
        with self._lock:
            if self._sample is None:
                return
            if self._position >= self._sample.num_frames:
                self._position = 0.0
            self._state = PlayerState.PLAYING
        self.notify(PlayerEvent.state_changed(PlayerState.PLAYING))

    def pause(self) -> None:
        with self._lock:
            if self._state is not PlayerState.PLAYING:
                return
            self._state = PlayerState.PAUSED
        self.notify(PlayerEvent.state_changed(PlayerState.PAUSED))

    def seek(self, seconds: float, allow_seek_ahead: bool = True) -> None:
        with self._lock:
            if self._sample is None:
                return
            seconds = max(0.0, min(seconds, self._sample.duration))
            self._position = seconds * self._sample.sample_rate
            if self._state is PlayerState.ENDED:
                self._state = PlayerState.PAUSED

    def get_current_time(self) -> float:
        with self._lock:
            if self._sample is None:
                return 0.0
            return self._position / self._sample.sample_rate

    def get_duration(self) -> float:
        with self._lock:
            return self._sample.duration if self._sample is not None else 0.0

    def get_state(self) -> PlayerState:
        return self._state

    def set_volume(self, volume: int) -> None:
        self._gain = max(0, min(100, volume)) / 100.0

    def set_playback_rate(self, rate: float) -> None:
        self._rate = float(rate)

    def destroy(self) -> None:
        with self._lock:
            self._destroyed = True
            self._listener = None
            self._sample = None
            self._state = PlayerState.UNSTARTED
        if self._output is not None:
            self._output.remove(self)

    # -------------------------------------------------------------------------
    # Rendering (audio thread)
    # -------------------------------------------------------------------------

    def render(self, frames: int) -> np.ndarray:
        """Produce `frames` stereo frames and advance the read position."""
        output = np.zeros((frames, 2), dtype=np.float32)
        ended = False

        with self._lock:
            sample = self._sample
            if sample is None or self._state is not PlayerState.PLAYING:
                return output

            data = sample.data
            n = sample.num_frames
            positions = self._position + np.arange(frames) * self._rate
            valid = positions < n
            if np.any(valid):
                pos = positions[valid]
                i0 = pos.astype(np.int64)
                i1 = np.minimum(i0 + 1, n - 1)
                frac = (pos - i0)[:, None].astype(np.float32)
                output[valid] = (data[i0] * (1.0 - frac) + data[i1] * frac) * self._gain

            self._position += frames * self._rate
            if self._position >= n:
                self._position = float(n)
                self._state = PlayerState.ENDED
                ended = True

        if ended:
            self.notify(PlayerEvent.state_changed(PlayerState.ENDED))
        return output


def sample_player_factory(library: SampleLibrary, output: AudioOutput = None) -> PlayerFactory:
    def factory(index: int, listener: PlayerListener) -> SamplePlayer:
        return SamplePlayer(listener, library, output)
    return factory
