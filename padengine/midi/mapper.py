"""
NoteMapper - MIDI note numbers to pad indices.

A contiguous block of notes starting at `start_note` (36, the usual C1 drum
pad base) addresses pads 0..pad_count-1. Other notes map to nothing.
"""

from __future__ import annotations
from typing import Optional


class NoteMapper:

    def __init__(self, start_note: int = 36, pad_count: int = 16):
        self.start_note = start_note
        self.pad_count = pad_count

    def note_to_pad(self, note: int) -> Optional[int]:
        index = note - self.start_note
        if 0 <= index < self.pad_count:
            return index
        return None

    def pad_to_note(self, index: int) -> int:
        return self.start_note + index
