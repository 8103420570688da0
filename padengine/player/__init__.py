"""Player contract consumed by the engine."""

from .base import (
    MediaPlayer,
    PlayerEvent,
    PlayerEventKind,
    PlayerFactory,
    PlayerListener,
    PlayerOptions,
    PlayerState,
)

__all__ = [
    'MediaPlayer',
    'PlayerEvent',
    'PlayerEventKind',
    'PlayerFactory',
    'PlayerListener',
    'PlayerOptions',
    'PlayerState',
]
