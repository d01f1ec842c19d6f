import os
import sys
from datetime import timedelta
import pytest

# Ensure the backend root (containing the `podium` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from podium import create_app, db, socketio
from podium.errors import AIProviderError
from podium.services.ai.provider import FeedbackProvider


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'DEBUG'
    BCRYPT_LOG_ROUNDS = 4
    OPENAI_API_KEY = ''
    OPENAI_MAX_TOKENS = 1000
    AI_MAX_WORKERS = 4
    AI_ANALYSIS_TIMEOUT_SEC = 5
    INSIGHTS_SESSION_LIMIT = 20


class FakeProvider(FeedbackProvider):
    """Scripted provider: returns ``reply`` (or ``reply(payload)``) and records every call."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def analyze(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        if callable(self.reply):
            return self.reply(payload)
        return self.reply


@pytest.fixture()
def provider():
    return FakeProvider(error=AIProviderError('provider offline'))


@pytest.fixture()
def flask_app(provider):
    application = create_app(TestConfig, feedback_provider=provider)
    with application.app_context():
        # Ensure models are imported so tables are created
        import podium.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def register(client, username='speaker', password='secret123'):
    res = client.post('/register', json={'username': username, 'password': password})
    assert res.status_code == 201, res.get_json()
    return res.get_json()['user']


@pytest.fixture()
def auth_client(flask_app):
    test_client = flask_app.test_client()
    test_client.user = register(test_client)
    return test_client


@pytest.fixture()
def make_user(flask_app):
    from podium.models import User

    def _make(username='analyst', password='secret123'):
        user = User(username=username)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture()
def make_session(flask_app):
    """Insert a completed session directly, ``days_ago`` before ``now``."""
    from podium.models import GameSession

    def _make(user, score, days_ago=1.0, game_type='rapidFire', duration=60, now=None, **performance):
        from podium.utils import utcnow
        start = (now or utcnow()) - timedelta(days=days_ago)
        session = GameSession(
            user_id=user.id,
            game_type=game_type,
            start_time=start,
            end_time=start + timedelta(seconds=duration),
            duration=duration,
            score=score,
            accuracy=performance.pop('accuracy', score),
            is_completed=True,
            **performance,
        )
        db.session.add(session)
        db.session.commit()
        return session
    return _make


@pytest.fixture()
def sio_client(flask_app, auth_client):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=auth_client,
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
