import heapq
import itertools
import os
import sys
import pytest

# Ensure the backend root (containing the `tapminer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from tapminer import create_app, get_game, socketio
from tapminer.exceptions import TransportError
from tapminer.game import TapMinerGame
from tapminer.services.scheduler import TimerHandle, run_timer


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'


class FakeClock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class ManualScheduler:
    """Fires timers only when a test advances virtual time."""

    def __init__(self, clock):
        self.clock = clock
        self._queue = []
        self._seq = itertools.count()

    def schedule_after(self, delay_ms, callback, name='timer'):
        handle = TimerHandle(name, delay_ms)
        heapq.heappush(self._queue, (self.clock.now + delay_ms, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self):
        return [entry[2] for entry in sorted(self._queue) if entry[2].pending]

    def advance(self, ms):
        target = self.clock.now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.clock.now = max(self.clock.now, due)
            run_timer(handle, callback)
        self.clock.now = target


class RecordingTransport:
    def __init__(self):
        self.sent = []
        self.closed = []
        self.failing = set()
        # handles whose socket died without a close event
        self.disconnected = set()

    def send(self, handle, event):
        if handle in self.failing:
            raise TransportError(handle, 'connection reset')
        self.sent.append((handle, event))

    def close(self, handle):
        self.closed.append(handle)

    def is_connected(self, handle):
        return handle not in self.disconnected and handle not in self.closed

    def events(self, handle=None, type=None):
        return [
            ev for h, ev in self.sent
            if (handle is None or h == handle) and (type is None or ev['type'] == type)
        ]

    def types(self, handle):
        return [ev['type'] for h, ev in self.sent if h == handle]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def game(transport, scheduler, clock):
    return TapMinerGame(transport, scheduler, clock=clock)


@pytest.fixture()
def flask_app(scheduler, clock):
    application = create_app(TestConfig, scheduler=scheduler, clock=clock)
    yield application
    get_game(application).shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
