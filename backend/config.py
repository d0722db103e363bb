import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DATA_DIR = os.path.join(BASE_DIR, 'bowldem', 'data')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(BASE_DIR, 'bowldem.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # First puzzle day (puzzle #0), UTC
    EPOCH_DATE = os.environ.get('EPOCH_DATE', '2026-01-15')
    MAX_GUESSES = int(os.environ.get('MAX_GUESSES', '5'))
    CATALOG_PATH = os.environ.get('CATALOG_PATH') or os.path.join(DATA_DIR, 'puzzles.json')
    PLAYERS_PATH = os.environ.get('PLAYERS_PATH') or os.path.join(DATA_DIR, 'players.json')
    # Enables per-player debug date offsets
    DEBUG_MODE = os.environ.get('DEBUG_MODE', 'false').lower() == 'true'
    # Optional remote validation authority; empty means score locally
    VALIDATION_URL = os.environ.get('VALIDATION_URL', '')
    VALIDATION_TIMEOUT_SEC = float(os.environ.get('VALIDATION_TIMEOUT_SEC', '3'))
    # Local JSON state for command-line play
    STATE_DIR = os.environ.get('STATE_DIR') or os.path.join(BASE_DIR, 'state')
    # Optional: heartbeat interval for rollover worker logs (sec). 0 disables.
    ROLLOVER_HEARTBEAT_SEC = int(os.environ.get('ROLLOVER_HEARTBEAT_SEC', '0'))
    ALLOWED_ORIGINS = [
        o.strip() for o in os.environ.get(
            'ALLOWED_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
