import json
import os
import sys
import pytest

# Ensure the backend root (containing the `quickfinger` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quickfinger import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    SHUTDOWN_GRACE_SEC = 1.0


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def clock(flask_app):
    fake = FakeClock()
    flask_app.extensions['rate_limiter'].clock = fake
    return fake


def _connect(flask_app):
    return socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )


@pytest.fixture()
def sio_client(flask_app):
    test_client = _connect(flask_app)
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def connect_client(flask_app):
    """Factory for extra socket clients; all are disconnected on teardown."""
    clients = []

    def _factory():
        c = _connect(flask_app)
        clients.append(c)
        return c

    yield _factory
    for c in clients:
        try:
            c.disconnect(namespace='/ws')
        except Exception:
            pass


def frames(test_client):
    """Decode every protocol frame received on /ws since the last call."""
    decoded = []
    for pkt in test_client.get_received('/ws'):
        if pkt['name'] not in ('message', 'json'):
            continue
        args = pkt['args']
        if isinstance(args, list):
            args = args[0]
        decoded.append(json.loads(args) if isinstance(args, str) else args)
    return decoded


def submit(test_client, nickname, score, framework='vue'):
    test_client.send(json.dumps({
        'type': 'SCORE_SUBMIT',
        'payload': {'nickname': nickname, 'score': score, 'framework': framework},
    }), namespace='/ws')
