import pytest

from bowldem.services.daily.scoring import FeedbackRecord
from bowldem.services.daily.state import (
    IN_PROGRESS, LOST, NOT_STARTED, TODAY_SLOT, WON, GameState, acknowledge, apply_guess, archive_slot, start_game,
)


def miss(candidate_id):
    return FeedbackRecord(candidate_id, False, False, False, False)


def hit(candidate_id):
    return FeedbackRecord(candidate_id, True, True, True, True)


def test_start_game_is_in_progress():
    state = start_game(TODAY_SLOT, '2026-01-15', 0)
    assert state.status == IN_PROGRESS
    assert state.attempts == ()
    assert GameState(slot_key=TODAY_SLOT).status == NOT_STARTED


def test_correct_guess_wins():
    state = apply_guess(start_game(TODAY_SLOT, '2026-01-15', 0), hit('kohli'), 5)
    assert state.status == WON
    assert state.attempts == ('kohli',)


def test_five_misses_lose():
    state = start_game(TODAY_SLOT, '2026-01-15', 0)
    for i, name in enumerate(['a', 'b', 'c', 'd', 'e'], start=1):
        state = apply_guess(state, miss(name), 5)
        assert len(state.attempts) == i
    assert state.status == LOST
    assert state.attempts_remaining(5) == 0


def test_win_on_last_attempt_counts_as_win():
    state = start_game(TODAY_SLOT, '2026-01-15', 0)
    for name in ['a', 'b', 'c', 'd']:
        state = apply_guess(state, miss(name), 5)
    state = apply_guess(state, hit('kohli'), 5)
    assert state.status == WON
    assert len(state.attempts) == 5


@pytest.mark.parametrize('terminal', [WON, LOST])
def test_terminal_state_ignores_guesses(terminal):
    state = GameState(slot_key=TODAY_SLOT, puzzle_date='2026-01-15', puzzle_number=0,
                      attempts=('a',), status=terminal)
    assert apply_guess(state, hit('kohli'), 5) is state


def test_acknowledge_once():
    state = GameState(slot_key=TODAY_SLOT, status=WON)
    acked = acknowledge(state)
    assert acked.result_acknowledged is True
    assert acknowledge(acked) is acked


def test_from_dict_rejects_bad_status():
    with pytest.raises(ValueError):
        GameState.from_dict({'slot_key': TODAY_SLOT, 'status': 'paused'})


def test_archive_slot_key():
    assert archive_slot('2026-01-16') == 'archive:2026-01-16'


def test_slot_with_no_attempts_left_takes_no_more():
    state = GameState(slot_key=TODAY_SLOT, puzzle_date='2026-01-15', puzzle_number=0,
                      attempts=('a', 'b', 'c', 'd', 'e'), status=IN_PROGRESS)
    assert apply_guess(state, hit('kohli'), 5) is state
