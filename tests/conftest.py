import pytest

from padengine.core.signal import SignalRecorder
from padengine.core import signal as signals
from padengine.engine import PadEngine
from padengine.player.base import MediaPlayer, PlayerEvent, PlayerState


class FakePlayer(MediaPlayer):
    """In-memory player: position only moves when a test sets it."""

    def __init__(self, listener, backend):
        super().__init__(listener)
        self.raw_listener = listener
        self.backend = backend
        self.clip_ref = None
        self.options = None
        self.duration = 0.0
        self.position = 0.0
        self.state = PlayerState.UNSTARTED
        self.volume = None
        self.rate = None
        self.destroyed = False
        self.calls = []

    @property
    def title(self):
        return f"title:{self.clip_ref}"

    def load(self, clip_ref, options):
        if self.backend.fail_load:
            raise RuntimeError("backend exploded")
        self.clip_ref = clip_ref
        self.options = options
        self.duration = self.backend.durations.get(clip_ref, self.backend.duration)
        self.position = options.start_time
        self.calls.append(('load', clip_ref))
        if self.backend.auto_ready:
            self.fire_ready()

    def play(self):
        self.calls.append('play')
        self.state = PlayerState.PLAYING

    def pause(self):
        self.calls.append('pause')
        self.state = PlayerState.PAUSED

    def seek(self, seconds, allow_seek_ahead=True):
        self.calls.append(('seek', seconds))
        self.position = seconds

    def get_current_time(self):
        return self.position

    def get_duration(self):
        return self.duration

    def get_state(self):
        return self.state

    def set_volume(self, volume):
        self.volume = volume

    def set_playback_rate(self, rate):
        self.rate = rate

    def destroy(self):
        self.destroyed = True
        self._listener = None

    # Test helpers

    def fire_ready(self):
        self.notify(PlayerEvent.ready())

    def finish(self):
        self.position = self.duration
        self.state = PlayerState.ENDED
        self.notify(PlayerEvent.state_changed(PlayerState.ENDED))

    @property
    def seeks(self):
        return [c[1] for c in self.calls if isinstance(c, tuple) and c[0] == 'seek']


class FakeBackend:
    """Player factory recording every player it hands out."""

    def __init__(self, duration=10.0, auto_ready=True):
        self.duration = duration
        self.durations = {}
        self.auto_ready = auto_ready
        self.fail_load = False
        self.players = []
        self.by_pad = {}

    def __call__(self, index, listener):
        player = FakePlayer(listener, self)
        self.players.append(player)
        self.by_pad[index] = player
        return player


ALL_SIGNALS = [
    value for name, value in vars(signals).items()
    if name.startswith('SIGNAL_')
]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def engine(backend):
    return PadEngine(backend)


@pytest.fixture
def recorder(engine):
    rec = SignalRecorder(engine.signals, *ALL_SIGNALS)
    yield rec
    rec.detach()
