"""Per-slot game state and its transitions.

A slot is either today's puzzle (``TODAY_SLOT``) or one archived puzzle
date (``archive_slot(date)``). States are immutable; every transition
returns a new ``GameState``.
"""
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .scoring import FeedbackRecord

NOT_STARTED = 'not_started'
IN_PROGRESS = 'in_progress'
WON = 'won'
LOST = 'lost'

STATUSES = (NOT_STARTED, IN_PROGRESS, WON, LOST)
TERMINAL_STATUSES = (WON, LOST)

TODAY_SLOT = 'today'


def archive_slot(puzzle_date: str) -> str:
    return f"archive:{puzzle_date}"


@dataclass(frozen=True)
class GameState:
    slot_key: str
    puzzle_date: Optional[str] = None
    puzzle_number: Optional[int] = None
    attempts: Tuple[str, ...] = field(default_factory=tuple)
    status: str = NOT_STARTED
    result_acknowledged: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def won(self) -> bool:
        return self.status == WON

    def attempts_remaining(self, max_attempts: int) -> int:
        return max(0, max_attempts - len(self.attempts))

    def to_dict(self):
        return {
            'slot_key': self.slot_key,
            'puzzle_date': self.puzzle_date,
            'puzzle_number': self.puzzle_number,
            'attempts': list(self.attempts),
            'status': self.status,
            'result_acknowledged': self.result_acknowledged,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GameState':
        status = data.get('status', NOT_STARTED)
        if status not in STATUSES:
            raise ValueError(f"invalid game status {status!r}")
        attempts = data.get('attempts') or []
        if not isinstance(attempts, list):
            raise ValueError('attempts must be a list')
        number = data.get('puzzle_number')
        return cls(
            slot_key=str(data['slot_key']),
            puzzle_date=data.get('puzzle_date'),
            puzzle_number=int(number) if number is not None else None,
            attempts=tuple(str(a) for a in attempts),
            status=status,
            result_acknowledged=bool(data.get('result_acknowledged', False)),
        )


def start_game(slot_key: str, puzzle_date: str, puzzle_number: int) -> GameState:
    """First interaction with a slot: straight to in_progress with no attempts."""
    return GameState(slot_key=slot_key, puzzle_date=puzzle_date, puzzle_number=puzzle_number, status=IN_PROGRESS)


def apply_guess(state: GameState, feedback: FeedbackRecord, max_attempts: int) -> GameState:
    """Append one scored attempt and decide the outcome.

    A win is checked before exhaustion, so a correct final attempt wins.
    Guessing into a finished slot, or one with no attempts left, returns
    the state unchanged.
    """
    if state.is_terminal or len(state.attempts) >= max_attempts:
        return state
    attempts = state.attempts + (feedback.candidate_id,)
    if feedback.is_target:
        status = WON
    elif len(attempts) >= max_attempts:
        status = LOST
    else:
        status = IN_PROGRESS
    return replace(state, attempts=attempts, status=status)


def acknowledge(state: GameState) -> GameState:
    if state.result_acknowledged:
        return state
    return replace(state, result_acknowledged=True)
