"""
MediaPlayer - Capability contract the engine needs from a playback backend.

One player instance per pad. The engine sequences calls on it and keeps its
own authoritative timing state; the player's clock is only queried.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional


class PlayerState(Enum):
    UNSTARTED = auto()
    PLAYING = auto()
    PAUSED = auto()
    ENDED = auto()


class PlayerEventKind(Enum):
    READY = auto()
    STATE_CHANGED = auto()
    ERROR = auto()          # clip could not be opened


@dataclass(frozen=True)
class PlayerEvent:
    """Notification delivered asynchronously by a player."""
    kind: PlayerEventKind
    state: Optional[PlayerState] = None
    message: str = ""

    @staticmethod
    def ready() -> PlayerEvent:
        return PlayerEvent(PlayerEventKind.READY)

    @staticmethod
    def state_changed(state: PlayerState) -> PlayerEvent:
        return PlayerEvent(PlayerEventKind.STATE_CHANGED, state)

    @staticmethod
    def error(message: str) -> PlayerEvent:
        return PlayerEvent(PlayerEventKind.ERROR, message=message)


@dataclass(frozen=True)
class PlayerOptions:
    start_time: float = 0.0
    volume: int = 100
    playback_rate: float = 1.0
    background: bool = True


PlayerListener = Callable[[PlayerEvent], None]


class MediaPlayer(ABC):
    """
    Abstract playback handle.

    Implementations call `listener` with READY once `get_duration()` is
    meaningful, and with STATE_CHANGED on transport changes. The listener may
    be invoked from any thread.
    """

    def __init__(self, listener: PlayerListener):
        self._listener = listener

    def notify(self, event: PlayerEvent):
        listener = self._listener
        if listener is not None:
            listener(event)

    @property
    def title(self) -> str:
        return ""

    @abstractmethod
    def load(self, clip_ref: str, options: PlayerOptions) -> None: ...

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def seek(self, seconds: float, allow_seek_ahead: bool = True) -> None: ...

    @abstractmethod
    def get_current_time(self) -> float: ...

    @abstractmethod
    def get_duration(self) -> float: ...

    @abstractmethod
    def get_state(self) -> PlayerState: ...

    @abstractmethod
    def set_volume(self, volume: int) -> None: ...

    @abstractmethod
    def set_playback_rate(self, rate: float) -> None: ...

    @abstractmethod
    def destroy(self) -> None:
        """Release resources. No notifications may be delivered afterwards."""


PlayerFactory = Callable[[int, PlayerListener], MediaPlayer]
