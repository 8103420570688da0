"""
Clip reference resolver - turn pasted or dropped text into a clip reference.

Two kinds of references are understood: local audio files (played by the
bundled sample backend) and video URLs, reduced to their 11 character id.
"""

from __future__ import annotations
from typing import Optional
import os
import re

from .core.errors import ClipResolveError

AUDIO_EXTS = (".wav", ".flac", ".mp3", ".ogg", ".aiff", ".aif")

_VIDEO_URL = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=|shorts/)([^#&?]*).*")
VIDEO_ID_LENGTH = 11


def extract_clip_id(url: str) -> Optional[str]:
    match = _VIDEO_URL.match(url)
    if match and len(match.group(2)) == VIDEO_ID_LENGTH:
        return match.group(2)
    return None


def is_audio_file(path: str) -> bool:
    return path.lower().endswith(AUDIO_EXTS) and os.path.isfile(path)


def resolve_clip_ref(text: str) -> str:
    """Resolve user text to a clip reference or raise ClipResolveError."""
    candidate = (text or "").strip().strip('"')
    if not candidate:
        raise ClipResolveError(text)

    if candidate.startswith("file://"):
        candidate = candidate[len("file://"):]
    path = os.path.expanduser(candidate)
    if is_audio_file(path):
        return os.path.normpath(os.path.abspath(path))

    clip_id = extract_clip_id(candidate)
    if clip_id:
        return clip_id

    raise ClipResolveError(text)
