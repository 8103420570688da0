"""
Pads - Pad model, trim window rules, playback state machine and stacking.
"""

from .pad import Pad, PadMode, PadRegistry, PadSettings, snap_rate, clamp_volume
from .trim import (
    EPSILON,
    set_start,
    set_end,
    shift_range,
    clamp_window,
    is_full_duration,
    format_time,
)
from .machine import (
    RESUME_THRESHOLD,
    PadStatus,
    PadEventKind,
    Effect,
    EffectKind,
    Transition,
    TransitionContext,
    transition,
    should_seek,
    boundary_hit,
)
from .stack import ActiveStack, LayerHint

__all__ = [
    'Pad',
    'PadMode',
    'PadRegistry',
    'PadSettings',
    'snap_rate',
    'clamp_volume',
    'EPSILON',
    'set_start',
    'set_end',
    'shift_range',
    'clamp_window',
    'is_full_duration',
    'format_time',
    'RESUME_THRESHOLD',
    'PadStatus',
    'PadEventKind',
    'Effect',
    'EffectKind',
    'Transition',
    'TransitionContext',
    'transition',
    'should_seek',
    'boundary_hit',
    'ActiveStack',
    'LayerHint',
]
