"""
Bundled playback backend
========================

Local audio files decoded with soundfile and mixed into one sounddevice
stream.

Quick Start:
    from padengine.audio import AudioOutput, SampleLibrary, sample_player_factory

    output = AudioOutput()
    output.start()
    factory = sample_player_factory(SampleLibrary(), output)
"""

from .output import AudioOutput, SOUNDDEVICE_AVAILABLE
from .sample_player import Sample, SampleLibrary, SamplePlayer, sample_player_factory

__all__ = [
    'AudioOutput',
    'SOUNDDEVICE_AVAILABLE',
    'Sample',
    'SampleLibrary',
    'SamplePlayer',
    'sample_player_factory',
]
