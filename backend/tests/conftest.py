import os
import sys
import pytest

# Ensure the backend root (containing the `farkle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from farkle import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/ws'
    WINNING_SCORE = 10000
    MIN_ENTRY_SCORE = 0
    ROOM_CODE_LENGTH = 5
    NAME_MAX_LENGTH = 20
    DEFAULT_PLAYER_NAME = 'Captain'
    LOG_MAX_ENTRIES = 20


class ScriptedDice:
    """Die roller that returns queued faces in order."""

    def __init__(self, *faces):
        self.faces = list(faces)

    def push(self, *faces):
        self.faces.extend(faces)

    def __call__(self):
        if not self.faces:
            raise AssertionError('ran out of scripted dice')
        return self.faces.pop(0)


@pytest.fixture()
def dice():
    return ScriptedDice()


@pytest.fixture()
def flask_app(dice):
    application = create_app(TestConfig)
    application.extensions['farkle'].roll = dice
    with application.app_context():
        yield application


@pytest.fixture()
def manager(flask_app):
    return flask_app.extensions['farkle']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients on /ws; all are disconnected at teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except RuntimeError:
            pass


@pytest.fixture()
def sio_client(connect):
    return connect()
