import pytest

from sketchquest.config import Config
from sketchquest.game.coordinator import RoundCoordinator
from sketchquest.game.store import SessionStore
from sketchquest.game.words import StaticWordSupplier
from sketchquest.server import create_app


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SECRET_KEY = "test-secret"
    SOCKETIO_ASYNC_MODE = "threading"
    TRUST_PROXY_HEADERS = False
    NEXT_ROUND_DELAY_SEC = 0
    AUTO_CREATE_ROOMS_ON_JOIN = False
    END_ROUND_WITHOUT_GUESSERS = False


class FakeSocketIO:
    """Records emits and queues background tasks instead of running them."""

    def __init__(self):
        self.emitted = []
        self.tasks = []
        self.slept = []

    def emit(self, event, data=None, to=None, **kwargs):
        self.emitted.append({"event": event, "data": data, "to": to, **kwargs})

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_tasks(self):
        tasks, self.tasks = self.tasks, []
        for target, args, kwargs in tasks:
            target(*args, **kwargs)

    def events(self, name, to=None):
        return [e for e in self.emitted if e["event"] == name and (to is None or e["to"] == to)]

    def last(self, name, to=None):
        found = self.events(name, to=to)
        return found[-1]["data"] if found else None

    def clear(self):
        self.emitted = []


@pytest.fixture()
def store():
    return SessionStore()


@pytest.fixture()
def fake_sio():
    return FakeSocketIO()


@pytest.fixture()
def words():
    return StaticWordSupplier(["cat", "dog", "sun"])


@pytest.fixture()
def make_coordinator(store, fake_sio, words):
    def _make(config=TestConfig, supplier=None):
        return RoundCoordinator(store, fake_sio, supplier or words, config=config)

    return _make


@pytest.fixture()
def coordinator(make_coordinator):
    return make_coordinator()


@pytest.fixture()
def app_and_socketio():
    return create_app(TestConfig, word_supplier=StaticWordSupplier(["cat"]))


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(app_and_socketio):
    app, socketio = app_and_socketio
    clients = []

    def _connect():
        c = socketio.test_client(app, flask_test_client=app.test_client())
        clients.append(c)
        return c

    yield _connect

    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
