import json
from datetime import date

import pytest

from bowldem.services.daily.errors import CatalogEmpty, UnknownCandidate
from bowldem.services.daily.selector import Catalog, archive_listing, load_catalog, select_puzzle


@pytest.mark.parametrize('index, expected', [(0, 0), (1, 1), (2, 2), (3, 0), (7, 1), (300, 0)])
def test_selection_wraps_around(catalog, index, expected):
    puzzle, wrapped = select_puzzle(index, catalog)
    assert wrapped == expected
    assert puzzle is catalog.puzzles[expected]


@pytest.mark.parametrize('cycles', [1, 2, 10])
def test_selection_repeats_every_catalog_length(catalog, cycles):
    for i in range(6):
        assert select_puzzle(i, catalog) == select_puzzle(i + cycles * len(catalog), catalog)


def test_selection_is_deterministic(catalog):
    assert select_puzzle(11, catalog) == select_puzzle(11, catalog)


def test_plain_list_is_accepted(catalog):
    puzzle, wrapped = select_puzzle(4, catalog.puzzles)
    assert (puzzle.id, wrapped) == ('p1', 1)


def test_empty_catalog_cannot_start():
    with pytest.raises(CatalogEmpty):
        select_puzzle(0, Catalog(puzzles=[]))


def test_unknown_candidate_lookup(catalog):
    with pytest.raises(UnknownCandidate):
        catalog.candidate('nobody')


def test_public_puzzle_hides_answer(catalog):
    public = catalog.puzzles[0].to_public_dict()
    assert 'target_identity' not in public
    assert 'participants' not in public
    assert 'kohli' not in json.dumps(public)


def test_load_catalog_from_files(tmp_path):
    puzzles = tmp_path / 'puzzles.json'
    players = tmp_path / 'players.json'
    puzzles.write_text(json.dumps({'puzzles': [
        {'id': 'm1', 'venue': 'Eden Gardens', 'participants': ['a'], 'target': {'identity': 'b', 'team': 'X', 'role': 'bowler'}},
    ]}))
    players.write_text(json.dumps({'players': [
        {'id': 'a', 'full_name': 'Player A', 'team': 'X', 'role': 'batter'},
        {'id': 'b', 'full_name': 'Player B', 'team': 'X', 'role': 'bowler'},
    ]}))
    loaded = load_catalog(puzzles, players)
    assert len(loaded) == 1
    assert loaded.puzzles[0].participants == frozenset({'a', 'b'})
    assert loaded.candidate('b').full_name == 'Player B'
    assert loaded.puzzle_by_id('m1') is loaded.puzzles[0]
    assert loaded.puzzle_by_id('missing') is None


def test_packaged_catalog_loads(flask_app):
    loaded = load_catalog(flask_app.config['CATALOG_PATH'], flask_app.config['PLAYERS_PATH'])
    assert len(loaded) >= 1
    for puzzle in loaded.puzzles:
        assert puzzle.target_identity in loaded.candidates


def test_archive_listing_newest_first():
    days = archive_listing('2026-01-18', '2026-01-15', {'2026-01-16': 'won'})
    assert [d.puzzle_date for d in days] == [date(2026, 1, 17), date(2026, 1, 16), date(2026, 1, 15)]
    assert [d.puzzle_number for d in days] == [2, 1, 0]
    assert [d.result for d in days] == [None, 'won', None]


def test_archive_listing_empty_on_epoch_day():
    assert archive_listing('2026-01-15', '2026-01-15') == []
