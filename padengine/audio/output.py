"""
AudioOutput - The single sounddevice stream every sample player mixes into.
"""

from __future__ import annotations
from typing import List, Optional, Protocol
import logging
import threading
import numpy as np

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    # OSError: PortAudio library missing
    SOUNDDEVICE_AVAILABLE = False
    logger.warning("sounddevice not available. Audio will be silent.")


class AudioSource(Protocol):
    def render(self, frames: int) -> np.ndarray: ...


class AudioOutput:
    """
    Stereo output stream summing registered sources.

    Usage:
        output = AudioOutput(sample_rate=44100, block_size=512)
        output.start()
        output.add(player)      # player.render(frames) -> (frames, 2)
    """

    def __init__(self, sample_rate: int = 44100, block_size: int = 512):
        self.sample_rate = sample_rate
        self.block_size = block_size

        self._sources: List[AudioSource] = []
        self._lock = threading.Lock()

        self._stream: Optional[sd.OutputStream] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def source_count(self) -> int:
        with self._lock:
            return len(self._sources)

    def add(self, source: AudioSource):
        with self._lock:
            if source not in self._sources:
                self._sources.append(source)

    def remove(self, source: AudioSource):
        with self._lock:
            if source in self._sources:
                self._sources.remove(source)

    def start(self) -> bool:
        """Open the device. Returns False (silent mode) when it cannot."""
        if not SOUNDDEVICE_AVAILABLE:
            logger.warning("AudioOutput: sounddevice not available, running silent")
            return False

        if self._running:
            return True

        try:
            self._stream = sd.OutputStream(
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                channels=2,
                dtype='float32',
                callback=self._audio_callback,
            )
            self._stream.start()
            self._running = True
            logger.info(f"AudioOutput: started (sr={self.sample_rate}, buf={self.block_size})")
            return True
        except Exception as e:
            logger.error(f"AudioOutput: failed to start: {e}")
            self._stream = None
            return False

    def stop(self):
        self._running = False
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("AudioOutput: stopped")

    def mix(self, frames: int) -> np.ndarray:
        """Sum one block from every source, clipped to [-1, 1]."""
        output = np.zeros((frames, 2), dtype=np.float32)
        with self._lock:
            sources = tuple(self._sources)

        for source in sources:
            output += source.render(frames)

        np.clip(output, -1.0, 1.0, out=output)
        return output

    def _audio_callback(self, outdata: np.ndarray, frames: int, time_info, status):
        """Runs on the audio thread."""
        if status:
            logger.debug(f"AudioOutput: {status}")
        outdata[:] = self.mix(frames)
