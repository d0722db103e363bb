import json

import pytest

from bowldem.services.daily.errors import PersistenceUnavailable
from bowldem.services.daily.persistence import JsonFileStore, MemoryStore, state_key
from bowldem.services.daily.state import IN_PROGRESS, LOST, NOT_STARTED, TODAY_SLOT, WON, GameState, archive_slot
from bowldem.services.daily.stats import Stats, record_result, empty_stats


def stores(tmp_path):
    return [MemoryStore(), JsonFileStore(tmp_path / 'player.json')]


@pytest.mark.parametrize('status', [IN_PROGRESS, WON, LOST])
def test_game_state_survives_reload(tmp_path, status):
    state = GameState(slot_key=TODAY_SLOT, puzzle_date='2026-01-15', puzzle_number=0,
                      attempts=('rohit', 'kohli'), status=status)
    JsonFileStore(tmp_path / 'p.json').save_game_state(TODAY_SLOT, state)
    assert JsonFileStore(tmp_path / 'p.json').load_game_state(TODAY_SLOT) == state


def test_missing_values_load_as_defaults(tmp_path):
    for store in stores(tmp_path):
        assert store.load_game_state(TODAY_SLOT) == GameState(slot_key=TODAY_SLOT)
        assert store.load_stats() == empty_stats(5)
        assert store.load_debug_offset() == 0
        assert store.load_archive_completed() == {}


def test_corrupt_file_loads_defaults(tmp_path):
    path = tmp_path / 'player.json'
    path.write_text('{not json')
    store = JsonFileStore(path)
    assert store.load_game_state(TODAY_SLOT).status == NOT_STARTED
    assert store.load_stats().games_played == 0


@pytest.mark.parametrize('payload', [
    {'slot_key': TODAY_SLOT, 'status': 'bogus'},
    {'slot_key': TODAY_SLOT, 'status': 'won', 'attempts': 'kohli'},
    {'slot_key': 'archive:2026-01-15', 'status': 'won', 'attempts': ['kohli']},
    {'slot_key': TODAY_SLOT, 'status': 'lost', 'attempts': ['a', 'b', 'c', 'd', 'e', 'f']},
    'not-a-dict',
])
def test_corrupt_game_state_loads_default(payload):
    store = MemoryStore()
    store.data[state_key(TODAY_SLOT)] = json.dumps(payload)
    assert store.load_game_state(TODAY_SLOT) == GameState(slot_key=TODAY_SLOT)


def test_short_distribution_is_padded():
    store = MemoryStore(max_guesses=5)
    store.save_stats(Stats(games_played=1, games_won=1, guess_distribution=(1,)))
    assert store.load_stats().guess_distribution == (1, 0, 0, 0, 0)


def test_commit_writes_state_and_stats_together(tmp_path):
    store = JsonFileStore(tmp_path / 'player.json')
    state = GameState(slot_key=TODAY_SLOT, puzzle_date='2026-01-15', puzzle_number=0, attempts=('kohli',), status=WON)
    stats = record_result(empty_stats(5), True, 1, '2026-01-15')
    store.commit(TODAY_SLOT, state, stats)
    document = json.loads((tmp_path / 'player.json').read_text())
    assert document[state_key(TODAY_SLOT)]['status'] == WON
    assert document['stats']['games_won'] == 1
    assert not list(tmp_path.glob('*.tmp'))


def test_archive_completion_and_clear(tmp_path):
    for store in stores(tmp_path):
        store.save_archive_completion('2026-01-16', WON)
        store.save_archive_completion('2026-01-17', LOST)
        store.save_debug_offset(-2)
        store.save_game_state(archive_slot('2026-01-16'), GameState(slot_key=archive_slot('2026-01-16'), status=WON))
        assert store.load_archive_completed() == {'2026-01-16': WON, '2026-01-17': LOST}
        assert store.load_debug_offset() == -2
        store.clear()
        assert store.load_archive_completed() == {}
        assert store.load_debug_offset() == 0
        assert store.load_game_state(archive_slot('2026-01-16')).status == NOT_STARTED


class BrokenStore(MemoryStore):
    def _read(self, key):
        raise PersistenceUnavailable('disk on fire')

    def _write(self, values):
        raise PersistenceUnavailable('disk on fire')


def test_unavailable_storage_degrades_to_memory():
    store = BrokenStore()
    assert store.load_stats() == empty_stats(5)
    assert store.degraded
    stats = record_result(empty_stats(5), True, 3, '2026-01-15')
    store.save_stats(stats)
    assert store.load_stats() == stats


def test_undecodable_file_loads_defaults(tmp_path):
    path = tmp_path / 'player.json'
    path.write_bytes(b'{"stats": "\xff\xfe"}')
    store = JsonFileStore(path)
    assert store.load_stats() == empty_stats(5)
    assert store.load_game_state(TODAY_SLOT) == GameState(slot_key=TODAY_SLOT)
    assert not store.degraded


def test_full_unfinished_slot_loads_as_lost():
    store = MemoryStore(max_guesses=5)
    full = GameState(slot_key=TODAY_SLOT, puzzle_date='2026-01-15', puzzle_number=0,
                     attempts=('a', 'b', 'c', 'd', 'e'), status=IN_PROGRESS)
    store.save_game_state(TODAY_SLOT, full)
    loaded = store.load_game_state(TODAY_SLOT)
    assert loaded.status == LOST
    assert loaded.attempts == full.attempts
