"""
Input normalization: every source ends in `engine.trigger` / `engine.release`.
"""

from .keyboard import KeyboardInput
from .pointer import PointerInput
from .midi import MidiPadInput
from .knob import KnobGesture, VolumeKnob, RateKnob
from .timeline import DragTarget, TimelineDrag, dampen

__all__ = [
    'KeyboardInput',
    'PointerInput',
    'MidiPadInput',
    'KnobGesture',
    'VolumeKnob',
    'RateKnob',
    'DragTarget',
    'TimelineDrag',
    'dampen',
]
