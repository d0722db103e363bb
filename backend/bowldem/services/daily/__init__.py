"""Daily puzzle domain: calendar, catalog selection, scoring, game state,
stats, ranking and player persistence.

Nothing in this package touches Flask or the database, so it can run in
the browser-facing server, in a local client, or in tests alike.
"""
from .calendar import Clock, date_for_puzzle_index, format_countdown, puzzle_index_for_date, time_until_next_boundary
from .errors import (
    BowldemError, CatalogEmpty, DuplicateSubmission, PersistenceUnavailable, UnknownCandidate, ValidationUnavailable,
)
from .persistence import JsonFileStore, MemoryStore, StateStore
from .ranking import LeaderboardEntry, aggregate_by_identity, percentile, rank_entries, rank_of
from .scoring import FeedbackRecord, Rejection, score_guess
from .selector import Candidate, Catalog, Puzzle, archive_listing, load_catalog, select_puzzle
from .session import DailySession, GuessOutcome
from .state import GameState, apply_guess
from .stats import Stats, record_result

__all__ = [
    'Clock', 'date_for_puzzle_index', 'format_countdown', 'puzzle_index_for_date', 'time_until_next_boundary',
    'BowldemError', 'CatalogEmpty', 'DuplicateSubmission', 'PersistenceUnavailable', 'UnknownCandidate',
    'ValidationUnavailable',
    'JsonFileStore', 'MemoryStore', 'StateStore',
    'LeaderboardEntry', 'aggregate_by_identity', 'percentile', 'rank_entries', 'rank_of',
    'FeedbackRecord', 'Rejection', 'score_guess',
    'Candidate', 'Catalog', 'Puzzle', 'archive_listing', 'load_catalog', 'select_puzzle',
    'DailySession', 'GuessOutcome',
    'GameState', 'apply_guess',
    'Stats', 'record_result',
]
