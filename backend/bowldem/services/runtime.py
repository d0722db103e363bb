"""Glue between the Flask app config and the daily domain objects."""
import os
import threading
import weakref

from flask import current_app

from bowldem.services.daily.calendar import Clock
from bowldem.services.daily.persistence import JsonFileStore
from bowldem.services.daily.selector import Catalog, load_catalog
from bowldem.services.daily.session import DailySession
from bowldem.services.daily.validation import RemoteValidator
from bowldem.services.store import SqlStateStore

# One write lock per player, shared by every live session for that player.
# Entries disappear once no session holds the lock.
_identity_locks = weakref.WeakValueDictionary()
_identity_locks_guard = threading.Lock()


class PlayerLock:
    """Context-manager lock that can live in a weak mapping."""

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


def identity_lock(identity: str) -> PlayerLock:
    with _identity_locks_guard:
        lock = _identity_locks.get(identity)
        if lock is None:
            lock = PlayerLock()
            _identity_locks[identity] = lock
        return lock


def get_catalog(app=None) -> Catalog:
    app = app or current_app._get_current_object()
    catalog = app.extensions.get('bowldem_catalog')
    if catalog is None:
        catalog = load_catalog(app.config['CATALOG_PATH'], app.config['PLAYERS_PATH'])
        app.extensions['bowldem_catalog'] = catalog
    return catalog


def server_clock(app=None) -> Clock:
    app = app or current_app._get_current_object()
    source = app.config.get('CLOCK_SOURCE')
    if source is None:
        return Clock(epoch=app.config['EPOCH_DATE'])
    return Clock(epoch=app.config['EPOCH_DATE'], source=source)


def remote_validator(app=None):
    app = app or current_app._get_current_object()
    url = app.config.get('VALIDATION_URL')
    if not url:
        return None
    return RemoteValidator(url, timeout=float(app.config.get('VALIDATION_TIMEOUT_SEC', 3)))


def session_for(identity: str) -> DailySession:
    """Server-hosted session whose state lives in ``saved_state`` rows."""
    app = current_app._get_current_object()
    max_guesses = int(app.config.get('MAX_GUESSES', 5))
    return DailySession(
        catalog=get_catalog(app),
        store=SqlStateStore(identity, max_guesses=max_guesses),
        epoch=app.config['EPOCH_DATE'],
        max_guesses=max_guesses,
        remote=remote_validator(app),
        clock_source=app.config.get('CLOCK_SOURCE'),
        debug_mode=bool(app.config.get('DEBUG_MODE')),
        lock=identity_lock(identity),
    )


def local_session(identity: str, app=None) -> DailySession:
    """Session for command-line play, persisted to ``STATE_DIR/<identity>.json``."""
    app = app or current_app._get_current_object()
    max_guesses = int(app.config.get('MAX_GUESSES', 5))
    path = os.path.join(app.config['STATE_DIR'], f"{identity}.json")
    return DailySession(
        catalog=get_catalog(app),
        store=JsonFileStore(path, max_guesses=max_guesses),
        epoch=app.config['EPOCH_DATE'],
        max_guesses=max_guesses,
        remote=remote_validator(app),
        clock_source=app.config.get('CLOCK_SOURCE'),
        debug_mode=bool(app.config.get('DEBUG_MODE')),
    )
