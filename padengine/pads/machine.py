# padengine/pads/machine.py
"""
Playback state machine.

`transition()` is pure: it decides the next status and the list of effects
the engine must carry out on the player and the active stack. It never
touches a player itself.

    status  x  event  ->  status', effects
    IDLE       TRIGGER      PLAYING  (levels, seek?, play, push)
    PLAYING    TRIGGER      PLAYING  (retrigger: restart) / IDLE (toggle off)
    PLAYING    RELEASE      IDLE     (gate only)
    PLAYING    TICK_HIT     PLAYING  (loop: restart) / IDLE
    PLAYING    NATURAL_END  PLAYING  (loop: restart) / IDLE
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import NamedTuple, Optional, Tuple

from .pad import PadMode
from .trim import EPSILON, is_full_duration

RESUME_THRESHOLD = 0.2


class PadStatus(Enum):
    IDLE = auto()
    PLAYING = auto()


class PadEventKind(Enum):
    TRIGGER = auto()
    RELEASE = auto()
    TICK_BOUNDARY_HIT = auto()
    NATURAL_END = auto()


class EffectKind(Enum):
    APPLY_LEVELS = auto()   # push volume + rate to the player
    SEEK = auto()
    PLAY = auto()
    PAUSE = auto()
    PUSH_STACK = auto()
    REMOVE_STACK = auto()


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    time: Optional[float] = None

    def __repr__(self) -> str:
        if self.time is None:
            return f"Effect({self.kind.name})"
        return f"Effect({self.kind.name}, {self.time:.3f})"


LEVELS = Effect(EffectKind.APPLY_LEVELS)
PLAY = Effect(EffectKind.PLAY)
PAUSE = Effect(EffectKind.PAUSE)
PUSH = Effect(EffectKind.PUSH_STACK)
REMOVE = Effect(EffectKind.REMOVE_STACK)


def seek(time: float) -> Effect:
    return Effect(EffectKind.SEEK, time)


@dataclass(frozen=True)
class TransitionContext:
    """Everything the decision depends on, captured at event time."""
    mode: PadMode
    retrigger: bool
    start_time: float
    end_time: float
    position: float = 0.0
    player_ended: bool = False
    resume_threshold: float = RESUME_THRESHOLD


class Transition(NamedTuple):
    status: PadStatus
    effects: Tuple[Effect, ...]

    @property
    def changed(self) -> bool:
        return bool(self.effects)


def should_seek(ctx: TransitionContext) -> bool:
    """Seek policy applied when a trigger starts playback."""
    if ctx.retrigger or ctx.player_ended:
        return True
    resumable = ctx.start_time <= ctx.position < ctx.end_time - ctx.resume_threshold
    return not resumable


def _start(ctx: TransitionContext) -> Tuple[Effect, ...]:
    if should_seek(ctx):
        return (LEVELS, seek(ctx.start_time), PLAY, PUSH)
    return (LEVELS, PLAY, PUSH)


def transition(status: PadStatus, event: PadEventKind, ctx: TransitionContext) -> Transition:
    if status is PadStatus.IDLE:
        if event is PadEventKind.TRIGGER:
            return Transition(PadStatus.PLAYING, _start(ctx))
        return Transition(PadStatus.IDLE, ())

    looping = ctx.mode is PadMode.LOOP

    if event is PadEventKind.TRIGGER:
        if ctx.retrigger:
            return Transition(PadStatus.PLAYING, _start(ctx))
        return Transition(PadStatus.IDLE, (PAUSE, REMOVE))

    if event is PadEventKind.RELEASE:
        if ctx.mode is PadMode.GATE:
            return Transition(PadStatus.IDLE, (PAUSE, REMOVE))
        return Transition(PadStatus.PLAYING, ())

    if event is PadEventKind.TICK_BOUNDARY_HIT:
        if looping:
            return Transition(PadStatus.PLAYING, (seek(ctx.start_time), PLAY))
        return Transition(PadStatus.IDLE, (PAUSE, seek(ctx.start_time), REMOVE))

    if event is PadEventKind.NATURAL_END:
        if looping:
            return Transition(PadStatus.PLAYING, (seek(ctx.start_time), PLAY))
        # player already stopped on its own
        return Transition(PadStatus.IDLE, (REMOVE,))

    raise ValueError(f"Unknown pad event: {event!r}")


def boundary_hit(
    position: float,
    end_time: float,
    duration: float,
    epsilon: float = EPSILON,
    full_duration_tolerance: float = EPSILON,
) -> bool:
    """Scheduler check: has playback reached the trimmed end?

    Windows ending within `full_duration_tolerance` of the clip end never hit;
    the player's own ENDED notification handles them so the tail is not cut
    short by polling granularity.
    """
    if is_full_duration(end_time, duration, full_duration_tolerance):
        return False
    return position >= end_time - epsilon
