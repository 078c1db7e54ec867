import itertools
import os
import sys
import threading
import pytest

# Ensure the backend root (containing the `quizlive` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from quizlive import create_app, socketio
from quizlive.services.rooms import TimerHandle


NAMESPACE = '/ws'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_NAMESPACE = NAMESPACE
    GAME_DURATION_SEC = 300
    TIMER_TICK_SEC = 1
    FINISH_GRACE_SEC = 2


class FakeScheduler:
    """Deterministic stand-in for BackgroundScheduler driven by ``advance``."""

    def __init__(self):
        self.lock = threading.RLock()
        self.now = 0.0
        self._entries = []
        self._seq = itertools.count()

    def call_later(self, delay, fn, *args):
        handle = TimerHandle()
        self._entries.append([self.now + delay, next(self._seq), None, handle, fn, args])
        return handle

    def call_every(self, interval, fn, *args):
        handle = TimerHandle(repeating=True)
        self._entries.append([self.now + interval, next(self._seq), interval, handle, fn, args])
        return handle

    @property
    def pending(self):
        return [e[3] for e in self._entries if e[3].active]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            self._entries = [e for e in self._entries if not e[3].cancelled]
            due_entries = [e for e in self._entries if e[0] <= target]
            if not due_entries:
                break
            entry = min(due_entries, key=lambda e: (e[0], e[1]))
            due, _, interval, handle, fn, args = entry
            self.now = due
            if interval is None:
                self._entries.remove(entry)
                handle.fired = True
            else:
                entry[0] = due + interval
            with self.lock:
                fn(*args)
        self.now = target


class FakeConnection:
    """Records what a room sends; can be closed or made to fail."""

    def __init__(self, sid='conn', fail=False):
        self.sid = sid
        self.open = True
        self.fail = fail
        self.sent = []

    def send(self, message):
        if self.fail:
            raise ConnectionError('socket went away')
        self.sent.append(message)

    def close(self):
        self.open = False

    def of_type(self, message_type):
        return [m for m in self.sent if m['type'] == message_type]

    def last(self, message_type):
        found = self.of_type(message_type)
        return found[-1] if found else None

    def types(self):
        return [m['type'] for m in self.sent]

    def clear(self):
        self.sent = []


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application
        application.extensions['quizlive'].shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def coordinator(flask_app):
    return flask_app.extensions['quizlive']


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients on the game namespace."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


def received(test_client):
    """Drain the protocol messages a test client has received."""
    return [pkt['args'] for pkt in test_client.get_received(NAMESPACE) if pkt['name'] == 'message']


def send(test_client, message):
    test_client.send(message, namespace=NAMESPACE)
