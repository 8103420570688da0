# padengine/pads/trim.py
"""
Trim window editing.

Every edit is clamp-silent: out-of-range proposals are pulled back inside
`0 <= start <= end - epsilon` and `end <= duration` instead of raising.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pad import Pad

EPSILON = 0.05


def set_start(pad: Pad, proposed: float, epsilon: float = EPSILON) -> float:
    pad.start_time = max(0.0, min(proposed, pad.end_time - epsilon))
    return pad.start_time


def set_end(pad: Pad, proposed: float, epsilon: float = EPSILON) -> float:
    pad.end_time = max(pad.start_time + epsilon, min(proposed, pad.duration))
    return pad.end_time


def shift_range(pad: Pad, delta: float) -> None:
    """Translate the window, keeping its width when it hits either edge."""
    new_start = pad.start_time + delta
    new_end = pad.end_time + delta

    if new_start < 0:
        overflow = -new_start
        new_start += overflow
        new_end += overflow
    if new_end > pad.duration:
        overflow = new_end - pad.duration
        new_start -= overflow
        new_end -= overflow

    # Window wider than the clip
    if new_end > pad.duration:
        new_end = pad.duration
    if new_start < 0:
        new_start = 0.0

    pad.start_time = new_start
    pad.end_time = new_end


def clamp_window(pad: Pad, epsilon: float = EPSILON) -> bool:
    """Pull a restored or copied window inside the now-known duration.

    Returns True if anything changed.
    """
    before = (pad.start_time, pad.end_time)
    if pad.end_time <= 0 or pad.end_time > pad.duration:
        pad.end_time = pad.duration
    if pad.start_time < 0:
        pad.start_time = 0.0
    if pad.end_time - pad.start_time < epsilon:
        pad.start_time = max(0.0, pad.end_time - epsilon)
    return (pad.start_time, pad.end_time) != before


def is_full_duration(end_time: float, duration: float, tolerance: float = EPSILON) -> bool:
    """Window runs (effectively) to the natural end of the clip."""
    return abs(duration - end_time) < tolerance


def format_time(seconds: float, precise: bool = False) -> str:
    """MM:SS, or MM:SS.mmm while a handle is being dragged."""
    seconds = max(0.0, seconds)
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    if precise:
        millis = int((seconds % 1) * 1000)
        return f"{minutes:02d}:{secs:02d}.{millis:03d}"
    return f"{minutes:02d}:{secs:02d}"
