import os
import sys
import random
import pytest

# Ensure the backend root (containing the `flagquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from flagquiz import create_app, db, socketio
from flagquiz.dataset import CountryDataset
from flagquiz.services.quiz import CountryRecord, QuizEngine
from flagquiz.services.quiz.scheduler import ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    COUNTRY_SOURCE = 'file'
    COUNTRIES_FILE = os.path.join(BACKEND_ROOT, 'flagquiz', 'data', 'countries.json')
    STRICT_TRANSITIONS = False
    TIMER_HEARTBEAT_SEC = 0
    # End sessions as soon as their last socket goes away
    SESSION_GRACE_SEC = 0
    SESSION_IDLE_SEC = 900


SAMPLE_COUNTRIES = [
    ('fr', 'Francia', 'France'),
    ('fj', 'Fiyi', 'Fiji'),
    ('de', 'Alemania', 'Germany'),
    ('jp', 'Japón', 'Japan'),
    ('pe', 'Perú', 'Peru'),
    ('cu', 'Cuba', 'Cuba'),
]


@pytest.fixture()
def records():
    return [CountryRecord(code=c, name_es=es, name_en=en) for c, es, en in SAMPLE_COUNTRIES]


@pytest.fixture()
def dataset(records):
    return CountryDataset(records)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def engine(dataset, scheduler):
    return QuizEngine(dataset, scheduler, rng=random.Random(7))


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import flagquiz.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['quiz_sessions']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
