"""One player's daily puzzle session.

Owns the today slot, any archive slots, stats and the debug date offset
for a single player, all persisted through an injected ``StateStore``.
Writes (guesses, acknowledgments, offset changes) are serialized with a
lock and always re-read persisted state first; reads never take the lock.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from .calendar import Clock, date_for_puzzle_index, puzzle_index_for_date, to_utc_date
from .persistence import StateStore
from .scoring import FeedbackRecord, Rejection, score_candidate
from .selector import ArchiveDay, Catalog, Puzzle, archive_listing, select_puzzle
from .state import (
    IN_PROGRESS, NOT_STARTED, TODAY_SLOT, GameState, acknowledge, apply_guess, archive_slot, start_game,
)
from .stats import Stats, record_result
from .validation import GuessValidator, ValidationResult

log = logging.getLogger(__name__)

DEFAULT_MAX_GUESSES = 5

REASON_NEW_USER = 'new_user'
REASON_NEW_DAY = 'new_day'
REASON_CONTINUE = 'continue'
REASON_COMPLETED = 'already_completed'


@dataclass(frozen=True)
class DailyPuzzle:
    puzzle: Puzzle
    puzzle_number: int
    puzzle_index: int
    puzzle_date: date

    def to_dict(self):
        return {
            'puzzle': self.puzzle.to_public_dict(),
            'puzzle_number': self.puzzle_number,
            'puzzle_index': self.puzzle_index,
            'puzzle_date': self.puzzle_date.isoformat(),
        }


@dataclass(frozen=True)
class GuessOutcome:
    state: GameState
    feedback: Optional[FeedbackRecord] = None
    source: Optional[str] = None
    rejection: Optional[Rejection] = None
    stats: Optional[Stats] = None

    @property
    def accepted(self) -> bool:
        return self.feedback is not None

    def to_dict(self):
        return {
            'accepted': self.accepted,
            'state': self.state.to_dict(),
            'feedback': self.feedback.to_dict() if self.feedback else None,
            'source': self.source,
            'rejection': self.rejection.to_dict() if self.rejection else None,
            'stats': self.stats.to_dict() if self.stats else None,
        }


class DailySession:
    def __init__(self, catalog: Catalog, store: StateStore, epoch, max_guesses: int = DEFAULT_MAX_GUESSES,
                 remote=None, clock_source=None, debug_mode: bool = False, lock=None):
        self.catalog = catalog
        self.store = store
        self.max_guesses = max_guesses
        self.debug_mode = debug_mode
        self.validator = GuessValidator(catalog, remote)
        self._base_clock = Clock(epoch=epoch) if clock_source is None else Clock(epoch=epoch, source=clock_source)
        self._lock = lock or threading.Lock()
        self.recover()

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    @property
    def epoch(self) -> date:
        return self._base_clock.epoch

    @property
    def debug_offset(self) -> int:
        return self.store.load_debug_offset() if self.debug_mode else 0

    @property
    def clock(self) -> Clock:
        return self._base_clock.with_offset(self.debug_offset)

    def effective_date(self) -> date:
        return self.clock.today()

    def puzzle_for_date(self, puzzle_date) -> DailyPuzzle:
        day = to_utc_date(puzzle_date)
        number = puzzle_index_for_date(day, self.epoch)
        puzzle, index = select_puzzle(number, self.catalog)
        return DailyPuzzle(puzzle=puzzle, puzzle_number=number, puzzle_index=index,
                           puzzle_date=date_for_puzzle_index(number, self.epoch))

    def today_puzzle(self) -> DailyPuzzle:
        return self.puzzle_for_date(self.effective_date())

    # ------------------------------------------------------------------
    # Today slot
    # ------------------------------------------------------------------

    def play_status(self, today: Optional[date] = None) -> Tuple[bool, str, Optional[GameState]]:
        """``(can_play, reason, existing_state)`` for today's puzzle."""
        state = self.store.load_game_state(TODAY_SLOT)
        today = (today or self.effective_date()).isoformat()
        if state.status == NOT_STARTED or not state.puzzle_date:
            return True, REASON_NEW_USER, None
        if state.puzzle_date != today:
            return True, REASON_NEW_DAY, None
        if state.is_terminal:
            return False, REASON_COMPLETED, state
        return True, REASON_CONTINUE, state

    def start_today(self) -> GameState:
        with self._lock:
            return self._today_state()

    def _today_state(self, today: Optional[date] = None) -> GameState:
        today = today or self.effective_date()
        _, reason, existing = self.play_status(today)
        if existing is not None:
            return existing
        daily = self.puzzle_for_date(today)
        state = start_game(TODAY_SLOT, daily.puzzle_date.isoformat(), daily.puzzle_number)
        self.store.save_game_state(TODAY_SLOT, state)
        log.info(f"[start] slot={TODAY_SLOT} date={state.puzzle_date} puzzle={state.puzzle_number} reason={reason}")
        return state

    def today_state(self) -> GameState:
        return self.store.load_game_state(TODAY_SLOT)

    def acknowledge_result(self) -> GameState:
        with self._lock:
            state = acknowledge(self.store.load_game_state(TODAY_SLOT))
            self.store.save_game_state(TODAY_SLOT, state)
            return state

    # ------------------------------------------------------------------
    # Archive slots
    # ------------------------------------------------------------------

    def archive(self) -> List[ArchiveDay]:
        return archive_listing(self.effective_date(), self.epoch, self.store.load_archive_completed())

    def _is_archive_date(self, day: date, today: Optional[date] = None) -> bool:
        return self.epoch <= day < (today or self.effective_date())

    def start_archive(self, puzzle_date, restart: bool = False) -> Optional[GameState]:
        day = to_utc_date(puzzle_date)
        if not self._is_archive_date(day):
            return None
        with self._lock:
            return self._archive_state(day, restart)

    def _archive_state(self, day: date, restart: bool = False) -> GameState:
        slot = archive_slot(day.isoformat())
        state = self.store.load_game_state(slot)
        if state.status == NOT_STARTED or restart:
            state = start_game(slot, day.isoformat(), puzzle_index_for_date(day, self.epoch))
            self.store.save_game_state(slot, state)
            log.info(f"[start] slot={slot} puzzle={state.puzzle_number}")
        return state

    def archive_state(self, puzzle_date) -> GameState:
        return self.store.load_game_state(archive_slot(to_utc_date(puzzle_date).isoformat()))

    # ------------------------------------------------------------------
    # Guessing
    # ------------------------------------------------------------------

    def submit_guess(self, candidate_id: str, puzzle_date=None) -> GuessOutcome:
        """Score one guess against today's puzzle, or an archived one.

        Finished slots return unchanged. Unknown or repeated candidates are
        rejected without using an attempt.
        """
        with self._lock:
            today = self.effective_date()
            day = to_utc_date(puzzle_date) if puzzle_date is not None else today
            if day == today:
                slot, state = TODAY_SLOT, self._today_state(today)
            elif self._is_archive_date(day, today):
                slot = archive_slot(day.isoformat())
                state = self._archive_state(day)
            else:
                current = self.store.load_game_state(archive_slot(day.isoformat()))
                return GuessOutcome(state=current, rejection=Rejection(candidate_id, 'unavailable_date'))

            if state.is_terminal:
                return GuessOutcome(state=state)
            if candidate_id in state.attempts:
                log.info(f"[guess-dup] slot={slot} candidate={candidate_id}")
                return GuessOutcome(state=state, rejection=Rejection(candidate_id, 'duplicate_guess'))

            puzzle, _ = select_puzzle(state.puzzle_number, self.catalog)
            result = self.validator.validate(puzzle, candidate_id)
            if isinstance(result, Rejection):
                log.info(f"[guess-reject] slot={slot} candidate={candidate_id} reason={result.reason}")
                return GuessOutcome(state=state, rejection=result)

            return self._record(slot, state, result)

    def _record(self, slot: str, state: GameState, result: ValidationResult) -> GuessOutcome:
        new_state = apply_guess(state, result.feedback, self.max_guesses)
        log.info(
            f"[guess] slot={slot} puzzle={new_state.puzzle_number} attempt={len(new_state.attempts)} "
            f"source={result.source} status={new_state.status}"
        )
        stats = None
        if new_state.status == IN_PROGRESS:
            self.store.save_game_state(slot, new_state)
        elif slot == TODAY_SLOT:
            stats = record_result(self.store.load_stats(), new_state.won, len(new_state.attempts), new_state.puzzle_date)
            self.store.commit(slot, new_state, stats)
            log.info(f"[stats] played={stats.games_played} won={stats.games_won} streak={stats.current_streak}")
        else:
            # Archive results never touch stats or streaks
            self.store.commit(slot, new_state)
            self.store.save_archive_completion(new_state.puzzle_date, new_state.status)
        return GuessOutcome(state=new_state, feedback=result.feedback, source=result.source, stats=stats)

    def feedback_history(self, state: Optional[GameState] = None) -> List[FeedbackRecord]:
        """Re-score a slot's attempts locally, e.g. to redraw the board after a reload."""
        state = state or self.today_state()
        if state.puzzle_number is None:
            return []
        puzzle, _ = select_puzzle(state.puzzle_number, self.catalog)
        history = []
        for candidate_id in state.attempts:
            scored = score_candidate(candidate_id, self.catalog, puzzle)
            if isinstance(scored, FeedbackRecord):
                history.append(scored)
        return history

    # ------------------------------------------------------------------
    # Stats & recovery
    # ------------------------------------------------------------------

    def stats(self) -> Stats:
        return self.store.load_stats()

    def recover(self) -> Optional[Stats]:
        """Fold a finished today game into stats if the stats write never landed."""
        with self._lock:
            state = self.store.load_game_state(TODAY_SLOT)
            if not state.is_terminal or not state.puzzle_date:
                return None
            stats = self.store.load_stats()
            if stats.last_recorded_date == state.puzzle_date:
                return None
            stats = record_result(stats, state.won, len(state.attempts), state.puzzle_date)
            self.store.save_stats(stats)
            log.warning(f"[stats-recover] date={state.puzzle_date} status={state.status}")
            return stats

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------

    def change_debug_date(self, delta: int) -> int:
        if not self.debug_mode:
            return 0
        with self._lock:
            offset = self.store.load_debug_offset() + int(delta)
            self.store.save_debug_offset(offset)
        log.info(f"[debug-offset] offset={offset} date={self.effective_date().isoformat()}")
        return offset

    def reset_debug_date(self) -> int:
        if not self.debug_mode:
            return 0
        with self._lock:
            self.store.save_debug_offset(0)
        return 0

    def clear_all_data(self) -> None:
        with self._lock:
            self.store.clear()
        log.info('[clear] all player data removed')
