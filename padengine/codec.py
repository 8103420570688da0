# padengine/codec.py
"""
State codec - the whole pad registry as one compact, link-safe string.

Layout: a JSON array with one entry per pad, `null` for empty pads, else

    {"v": clip_ref, "s": start, "e": end, "m": mode,
     "vol": volume, "r": rate, "rt": 0|1}

encoded with standard base64. Times are rounded to 2 decimals.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence
import base64
import binascii
import json
import logging
import math

from .core.config import PLAYBACK_RATES
from .pads.pad import Pad, PadMode, PadSettings, clamp_volume, snap_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PadRecord:
    """One decoded pad entry, already normalized."""
    clip_ref: str
    start_time: float = 0.0
    end_time: float = 0.0
    mode: PadMode = PadMode.GATE
    volume: int = 100
    playback_rate: float = 1.0
    retrigger: bool = True

    def to_settings(self) -> PadSettings:
        return PadSettings(
            clip_ref=self.clip_ref,
            start_time=self.start_time,
            end_time=self.end_time,
            mode=self.mode,
            volume=self.volume,
            playback_rate=self.playback_rate,
            retrigger=self.retrigger,
        )


def _compact(value: float):
    """2.0 -> 2, so links match what a JS encoder would emit."""
    value = float(value)
    return int(value) if value.is_integer() else value


def _pad_entry(pad: Pad) -> Optional[dict]:
    if pad.is_empty:
        return None
    return {
        'v': pad.clip_ref,
        's': _compact(round(pad.start_time, 2)),
        'e': _compact(round(pad.end_time, 2)),
        'm': pad.mode.value,
        'vol': int(pad.volume),
        'r': _compact(pad.playback_rate),
        'rt': 1 if pad.retrigger else 0,
    }


def encode_state(pads: Iterable[Pad]) -> str:
    entries = [_pad_entry(p) for p in pads]
    payload = json.dumps(entries, separators=(',', ':'))
    return base64.b64encode(payload.encode('utf-8')).decode('ascii')


def _record_from_entry(entry: Any, rates: Sequence[float]) -> Optional[PadRecord]:
    if not isinstance(entry, dict):
        return None
    clip_ref = entry.get('v')
    if not isinstance(clip_ref, str) or not clip_ref:
        return None

    def number(key, default):
        value = entry.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        try:
            value = float(value)
        except OverflowError:
            return default
        return value if math.isfinite(value) else default

    rt = entry.get('rt')
    return PadRecord(
        clip_ref=clip_ref,
        start_time=max(0.0, number('s', 0.0)),
        end_time=max(0.0, number('e', 0.0)),
        mode=PadMode.parse(entry.get('m'), default=PadMode.GATE),
        volume=clamp_volume(number('vol', 100)),
        playback_rate=snap_rate(number('r', 1.0), rates),
        retrigger=True if rt is None else bool(rt),
    )


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} in shared state")


def decode_state(
    encoded: Optional[str],
    pad_count: int = 16,
    rates: Sequence[float] = PLAYBACK_RATES,
) -> Optional[List[Optional[PadRecord]]]:
    """Decode a share string. Returns None (never raises) on malformed input."""
    if not encoded:
        return None

    text = encoded.strip().lstrip('#')
    # URL transport sometimes turns '+' into ' '
    text = text.replace(' ', '+')

    try:
        raw = base64.b64decode(text, validate=True)
        data = json.loads(raw.decode('utf-8'), parse_constant=_reject_constant)
    except (binascii.Error, ValueError, RecursionError) as e:
        logger.warning(f"Discarding malformed shared state: {e}")
        return None

    if not isinstance(data, list):
        logger.warning("Discarding shared state: top level is not a list")
        return None

    records = [_record_from_entry(entry, rates) for entry in data[:pad_count]]
    records.extend([None] * (pad_count - len(records)))
    return records
