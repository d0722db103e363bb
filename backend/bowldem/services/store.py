"""Database-backed stores: server-hosted player state and the leaderboard."""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bowldem import db
from bowldem.models import LeaderboardSubmission, SavedState
from bowldem.services.daily.errors import DuplicateSubmission, PersistenceUnavailable
from bowldem.services.daily.persistence import DEFAULT_MAX_GUESSES, StateStore
from bowldem.services.daily.ranking import LeaderboardEntry, aggregate_by_identity

log = logging.getLogger(__name__)

# Leaderboard writes are evaluated one at a time
_submit_lock = threading.Lock()


class SqlStateStore(StateStore):
    """``StateStore`` keeping one ``SavedState`` row per (owner, key)."""

    def __init__(self, owner: str, max_guesses: int = DEFAULT_MAX_GUESSES):
        super().__init__(max_guesses)
        self.owner = owner

    def _row(self, key):
        return SavedState.query.filter_by(owner=self.owner, key=key).first()

    def _read(self, key):
        try:
            row = self._row(key)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceUnavailable(str(exc)) from exc
        if row is None:
            return None
        try:
            return row.value
        except ValueError as exc:
            log.warning(f"[store-corrupt] owner={self.owner} key={key} error={exc}")
            return None

    def _write(self, values):
        try:
            for key, value in values.items():
                row = self._row(key)
                if row is None:
                    row = SavedState(owner=self.owner, key=key)
                row.value = value
                db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceUnavailable(str(exc)) from exc

    def _delete(self, keys):
        try:
            SavedState.query.filter(SavedState.owner == self.owner, SavedState.key.in_(list(keys))).delete(
                synchronize_session=False
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceUnavailable(str(exc)) from exc

    def _keys(self):
        try:
            return [row.key for row in SavedState.query.filter_by(owner=self.owner).all()]
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceUnavailable(str(exc)) from exc


@dataclass(frozen=True)
class SubmitResult:
    success: bool
    duplicate: bool = False
    entry: Optional[LeaderboardEntry] = None
    error: Optional[str] = None

    def to_dict(self):
        data = {'success': self.success}
        if self.duplicate:
            data['duplicate'] = True
        if self.entry is not None:
            data['entry'] = self.entry.to_dict()
        if self.error:
            data['error'] = self.error
        return data


def fetch_entries(puzzle_date: str, scope_key: Optional[str] = None) -> List[LeaderboardEntry]:
    query = LeaderboardSubmission.query.filter_by(puzzle_date=puzzle_date)
    if scope_key:
        query = query.filter_by(scope_key=scope_key)
    rows = query.order_by(LeaderboardSubmission.guesses_used.asc(), LeaderboardSubmission.submitted_at.asc()).all()
    return [row.to_entry() for row in rows]


def fetch_history(identity: str) -> List[LeaderboardEntry]:
    rows = (
        LeaderboardSubmission.query.filter_by(identity=identity)
        .order_by(LeaderboardSubmission.puzzle_date.desc())
        .all()
    )
    return [row.to_entry() for row in rows]


def fetch_aggregates(scope_key: Optional[str] = None, zero_win_average: float = DEFAULT_MAX_GUESSES):
    query = LeaderboardSubmission.query.filter_by(is_seed=False)
    if scope_key:
        query = query.filter_by(scope_key=scope_key)
    return aggregate_by_identity((row.to_entry() for row in query.all()), zero_win_average=zero_win_average)


def _existing(identity: str, puzzle_date: str) -> Optional[LeaderboardSubmission]:
    return LeaderboardSubmission.query.filter_by(identity=identity, puzzle_date=puzzle_date).first()


def _insert(entry: LeaderboardEntry) -> LeaderboardSubmission:
    if _existing(entry.identity, entry.puzzle_date):
        raise DuplicateSubmission(entry.identity, entry.puzzle_date)
    row = LeaderboardSubmission(
        identity=entry.identity,
        display_name=entry.display_name,
        puzzle_date=entry.puzzle_date,
        puzzle_number=entry.puzzle_number,
        guesses_used=entry.guesses_used,
        won=entry.won,
        scope_key=entry.scope_key,
        is_seed=entry.is_seed,
        submitted_at=entry.submitted_at,
    )
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise DuplicateSubmission(entry.identity, entry.puzzle_date) from exc
    return row


def submit_entry(identity: str, puzzle_date: str, guesses_used: int, won: bool, *,
                 max_guesses: int = DEFAULT_MAX_GUESSES, scope_key: Optional[str] = None,
                 display_name: Optional[str] = None, puzzle_number: Optional[int] = None,
                 submitted_at: Optional[datetime] = None, is_seed: bool = False) -> SubmitResult:
    """Record one result per identity per puzzle date. Repeats come back as duplicates."""
    entry = LeaderboardEntry(
        identity=identity,
        puzzle_date=puzzle_date,
        # A loss is stored as having used every guess
        guesses_used=int(guesses_used) if won else max_guesses,
        won=bool(won),
        submitted_at=submitted_at or datetime.now(timezone.utc),
        scope_key=scope_key,
        display_name=display_name,
        puzzle_number=puzzle_number,
        is_seed=is_seed,
    )
    with _submit_lock:
        try:
            row = _insert(entry)
        except DuplicateSubmission:
            log.info(f"[leaderboard-dup] identity={identity} date={puzzle_date}")
            return SubmitResult(success=False, duplicate=True, error='Already submitted for this puzzle')
        except SQLAlchemyError as exc:
            db.session.rollback()
            log.warning(f"[leaderboard-error] identity={identity} date={puzzle_date} error={exc}")
            return SubmitResult(success=False, error='Leaderboard unavailable')
    log.info(f"[leaderboard] identity={identity} date={puzzle_date} won={entry.won} guesses={entry.guesses_used}")
    return SubmitResult(success=True, entry=row.to_entry())
