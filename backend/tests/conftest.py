import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure the backend root (containing the `bowldem` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bowldem import create_app, db, socketio
from bowldem.services.daily.persistence import MemoryStore
from bowldem.services.daily.selector import Candidate, Catalog, Puzzle
from bowldem.services.daily.session import DailySession
from config import DATA_DIR

EPOCH = '2026-01-15'


class FrozenClock:
    """Callable clock source the tests can move by hand."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    EPOCH_DATE = EPOCH
    MAX_GUESSES = 5
    CATALOG_PATH = os.path.join(DATA_DIR, 'puzzles.json')
    PLAYERS_PATH = os.path.join(DATA_DIR, 'players.json')
    DEBUG_MODE = True
    VALIDATION_URL = ''
    ALLOWED_ORIGINS = ['http://localhost:5173']


def make_puzzle(index, target, team, role, participants=(), puzzle_id=None):
    return Puzzle(
        id=puzzle_id or f"p{index}",
        puzzle_index=index,
        match_context={'format': 'T20I'},
        venue='Test Ground',
        scorecard={},
        participants=frozenset(participants) | {target},
        target_identity=target,
        target_team=team,
        target_role=role,
    )


@pytest.fixture()
def catalog():
    candidates = [
        Candidate('kohli', 'Virat Kohli', 'India', 'batter'),
        Candidate('rohit', 'Rohit Sharma', 'India', 'batter'),
        Candidate('bumrah', 'Jasprit Bumrah', 'India', 'bowler'),
        Candidate('smith', 'Steve Smith', 'Australia', 'batter'),
        Candidate('cummins', 'Pat Cummins', 'Australia', 'bowler'),
        Candidate('starc', 'Mitchell Starc', 'Australia', 'bowler'),
        Candidate('lyon', 'Nathan Lyon', 'Australia', 'bowler'),
        Candidate('root', 'Joe Root', 'England', 'batter'),
    ]
    puzzles = [
        make_puzzle(0, 'kohli', 'India', 'batter', participants=('rohit', 'bumrah', 'smith', 'cummins')),
        make_puzzle(1, 'cummins', 'Australia', 'bowler', participants=('smith', 'starc', 'root')),
        make_puzzle(2, 'root', 'England', 'batter', participants=('kohli', 'bumrah')),
    ]
    return Catalog(puzzles=puzzles, candidates={c.id: c for c in candidates})


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture()
def store():
    return MemoryStore(max_guesses=5)


@pytest.fixture()
def session(catalog, store, clock):
    return DailySession(catalog, store, epoch=EPOCH, max_guesses=5, clock_source=clock, debug_mode=True)


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    application.config['CLOCK_SOURCE'] = clock
    with application.app_context():
        # Ensure models are imported so tables are created
        import bowldem.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


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
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
