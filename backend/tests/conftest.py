import os
import random
import sys
import pytest

# Ensure the backend root (containing the `partyroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from partyroom import create_app, socketio
from partyroom import registry as app_registry
from partyroom.registry import RegistryListener, RoomRegistry
from partyroom.services.scheduler import TimerHandle
from partyroom.settings import GameSettings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    LOG_LEVEL = 'WARNING'


class ManualScheduler:
    """Scheduler stand-in: timers only fire when a test says so."""

    def __init__(self):
        self.timers = []

    def call_later(self, delay, fn, *args):
        handle = TimerHandle(delay)
        self.timers.append((handle, fn, args, False))
        return handle

    def every(self, interval, fn, *args):
        handle = TimerHandle(interval)
        self.timers.append((handle, fn, args, True))
        return handle

    def pending(self):
        return [t for t in self.timers if not t[0].cancelled and not t[3]]

    def run_pending(self):
        """Fire every one-shot timer that is due now or later, in arming order."""
        fired = 0
        for handle, fn, args, _repeat in self.pending():
            if handle.cancelled:
                continue
            handle.cancel()
            fn(*args)
            fired += 1
        return fired


class RecordingListener(RegistryListener):

    def __init__(self):
        self.calls = []

    def on_action_applied(self, room, result):
        self.calls.append(('action', result.event))

    def on_winner_detected(self, room, winner, standings):
        self.calls.append(('winner', winner.name))

    def on_lock_released(self, room, reason, expired):
        self.calls.append(('released', reason, expired))

    def on_game_over(self, room, winner, standings):
        self.calls.append(('game_over', winner.name if winner else None))

    def on_player_left(self, room, player):
        self.calls.append(('left', player.name))

    def on_room_closed(self, code, reason, member_ids):
        self.calls.append(('closed', code, reason))

    def of(self, kind):
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def listener():
    return RecordingListener()


@pytest.fixture()
def settings():
    return GameSettings()


@pytest.fixture()
def registry(settings, scheduler, listener):
    return RoomRegistry(settings, scheduler, listener, random.Random(7))


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application
    app_registry.reset()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        test_client.get_received('/ws')  # drop the connected greeting
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


@pytest.fixture()
def sio_client(make_sio):
    return make_sio()
