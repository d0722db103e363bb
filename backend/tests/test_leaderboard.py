from datetime import datetime, timezone

from bowldem.models import LeaderboardSubmission
from bowldem.services import store as store_module
from bowldem.services.store import fetch_entries, submit_entry

DAY = '2026-01-15'


def post(client, identity, guesses, won=True, day=DAY, **extra):
    body = {'identity': identity, 'puzzle_date': day, 'guesses_used': guesses, 'won': won}
    body.update(extra)
    return client.post('/api/leaderboard', json=body)


def test_duplicate_submission_is_refused(client):
    res = post(client, 'X', 3)
    assert res.status_code == 201
    assert res.get_json()['success'] is True

    res = post(client, 'X', 1)
    assert res.status_code == 409
    body = res.get_json()
    assert body['success'] is False
    assert body['duplicate'] is True

    entries = client.get(f'/api/leaderboard/{DAY}').get_json()['entries']
    assert [(e['identity'], e['guesses_used']) for e in entries] == [('X', 3)]


def test_tie_broken_by_submission_time(flask_app):
    submit_entry('late', DAY, 2, True, submitted_at=datetime(2026, 1, 15, 10, 5, tzinfo=timezone.utc))
    submit_entry('early', DAY, 2, True, submitted_at=datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc))
    client = flask_app.test_client()
    entries = client.get(f'/api/leaderboard/{DAY}').get_json()['entries']
    assert [(e['rank'], e['identity']) for e in entries] == [(1, 'early'), (2, 'late')]


def test_loss_is_stored_with_max_guesses(client):
    post(client, 'loser', 2, won=False)
    row = LeaderboardSubmission.query.filter_by(identity='loser').one()
    assert row.guesses_used == 5
    assert row.won is False
    board = client.get(f'/api/leaderboard/{DAY}').get_json()
    assert board['total_entries'] == 1
    assert board['total_winners'] == 0
    assert board['entries'] == []


def test_board_limit_and_scope(client):
    for i in range(7):
        post(client, f'p{i}', 1 + i % 5, scope_key='guild-1' if i % 2 else None)
    board = client.get(f'/api/leaderboard/{DAY}').get_json()
    assert len(board['entries']) == 5
    assert [e['rank'] for e in board['entries']] == [1, 2, 3, 4, 5]
    assert len(client.get(f'/api/leaderboard/{DAY}?limit=2').get_json()['entries']) == 2
    scoped = client.get(f'/api/leaderboard/{DAY}?scope=guild-1').get_json()
    assert {e['identity'] for e in scoped['entries']} == {'p1', 'p3', 'p5'}


def test_rank_percentile_and_window(client):
    for identity, guesses in [('a', 1), ('b', 2), ('c', 3), ('d', 4)]:
        post(client, identity, guesses)
    post(client, 'e', 5, won=False)

    res = client.get(f'/api/leaderboard/{DAY}/rank/c')
    assert res.status_code == 200
    body = res.get_json()
    assert body['rank'] == 3
    assert body['total_entries'] == 5
    assert body['percentile'] == 60
    assert [w['identity'] for w in body['surrounding']] == ['a', 'b', 'c', 'd']

    loser = client.get(f'/api/leaderboard/{DAY}/rank/e').get_json()
    assert loser['rank'] is None
    assert loser['percentile'] == 20

    assert client.get(f'/api/leaderboard/{DAY}/rank/nobody').status_code == 404


def test_all_time_excludes_seed_entries(client):
    post(client, 'ann', 2, day='2026-01-15', display_name='Ann')
    post(client, 'ann', 4, day='2026-01-16')
    post(client, 'bob', 1, day='2026-01-15')
    post(client, 'cat', 5, won=False, day='2026-01-15')
    submit_entry('seedy', '2026-01-15', 1, True, is_seed=True)

    players = client.get('/api/leaderboard/all-time').get_json()['players']
    assert [p['identity'] for p in players] == ['ann', 'bob', 'cat']
    assert players[0]['display_name'] == 'Ann'
    assert players[0]['average_guesses'] == 3.0
    assert players[2]['average_guesses'] == 5.0
    # Seed entries still show on the daily board
    assert 'seedy' in {e.identity for e in fetch_entries('2026-01-15')}


def test_history_newest_first(client):
    post(client, 'hist', 3, day='2026-01-15')
    post(client, 'hist', 2, day='2026-01-17')
    post(client, 'hist', 4, day='2026-01-16')
    entries = client.get('/api/leaderboard/history/hist').get_json()['entries']
    assert [e['puzzle_date'] for e in entries] == ['2026-01-17', '2026-01-16', '2026-01-15']


def test_bad_submissions(client):
    assert client.post('/api/leaderboard', json={'puzzle_date': DAY}).status_code == 400
    assert post(client, 'z', 2, day='15/01/2026').status_code == 400
    assert post(client, 'z', 0).status_code == 400
    assert post(client, 'z', 6).status_code == 400
    assert post(client, 'z', 'two').status_code == 400
    assert client.get('/api/leaderboard/not-a-date').status_code == 400


def test_insert_race_comes_back_as_duplicate(flask_app, monkeypatch):
    assert submit_entry('racer', DAY, 2, True).success
    # Another writer inserted between the lookup and the commit
    monkeypatch.setattr(store_module, '_existing', lambda identity, puzzle_date: None)

    result = submit_entry('racer', DAY, 4, True)
    assert result.to_dict() == {'success': False, 'duplicate': True, 'error': 'Already submitted for this puzzle'}
    rows = LeaderboardSubmission.query.filter_by(identity='racer').all()
    assert [row.guesses_used for row in rows] == [2]
