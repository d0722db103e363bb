from flask import Blueprint, jsonify, request, current_app
from bowldem import socketio
from bowldem.services.daily.calendar import to_utc_date
from bowldem.services.daily.ranking import (
    DEFAULT_TOP_N, percentile, rank_entries, rank_of, surrounding, top_entries,
)
from bowldem.services.store import fetch_aggregates, fetch_entries, fetch_history, submit_entry


leaderboard = Blueprint('leaderboard', __name__)


def _normalize_date(raw):
    if not isinstance(raw, str):
        return None
    try:
        return to_utc_date(raw).isoformat()
    except ValueError:
        return None


def _ranked_rows(ranked):
    rows = []
    for rank, entry in enumerate(ranked, start=1):
        row = entry.to_dict()
        row['rank'] = rank
        rows.append(row)
    return rows


@leaderboard.route('', methods=['POST'])
def submit_result():
    data = request.get_json(silent=True) or {}
    identity = data.get('identity')
    puzzle_date = _normalize_date(data.get('puzzle_date'))
    if not identity or puzzle_date is None:
        return jsonify({'error': 'identity and puzzle_date (YYYY-MM-DD) are required'}), 400

    max_guesses = int(current_app.config.get('MAX_GUESSES', 5))
    won = bool(data.get('won'))
    try:
        guesses_used = int(data.get('guesses_used', max_guesses))
    except (TypeError, ValueError):
        return jsonify({'error': 'guesses_used must be an integer'}), 400
    if not 1 <= guesses_used <= max_guesses:
        return jsonify({'error': f'guesses_used must be between 1 and {max_guesses}'}), 400

    puzzle_number = data.get('puzzle_number')
    result = submit_entry(
        str(identity), puzzle_date, guesses_used, won,
        max_guesses=max_guesses,
        scope_key=data.get('scope_key'),
        display_name=data.get('display_name'),
        puzzle_number=int(puzzle_number) if isinstance(puzzle_number, int) else None,
    )
    if result.duplicate:
        return jsonify(result.to_dict()), 409
    if not result.success:
        return jsonify(result.to_dict()), 503

    socketio.emit(
        'leaderboard_update',
        {'puzzle_date': puzzle_date, 'identity': result.entry.identity},
        to=f"leaderboard:{puzzle_date}",
        namespace='/ws',
    )
    return jsonify(result.to_dict()), 201


@leaderboard.route('/all-time', methods=['GET'])
def all_time():
    scope = request.args.get('scope') or None
    zero_win_average = int(current_app.config.get('MAX_GUESSES', 5))
    aggregates = fetch_aggregates(scope_key=scope, zero_win_average=zero_win_average)
    return jsonify({'scope': scope, 'players': [a.to_dict() for a in aggregates]})


@leaderboard.route('/history/<string:identity>', methods=['GET'])
def history(identity):
    return jsonify({'identity': identity, 'entries': [e.to_dict() for e in fetch_history(identity)]})


@leaderboard.route('/<string:puzzle_date>', methods=['GET'])
def daily_board(puzzle_date):
    day = _normalize_date(puzzle_date)
    if day is None:
        return jsonify({'error': 'puzzle_date must be YYYY-MM-DD'}), 400
    scope = request.args.get('scope') or None
    try:
        limit = int(request.args.get('limit', DEFAULT_TOP_N))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400

    entries = fetch_entries(day, scope_key=scope)
    ranked = rank_entries(entries)
    return jsonify({
        'puzzle_date': day,
        'scope': scope,
        'total_entries': len(entries),
        'total_winners': len(ranked),
        'entries': _ranked_rows(top_entries(ranked, limit)),
    })


@leaderboard.route('/<string:puzzle_date>/rank/<string:identity>', methods=['GET'])
def player_rank(puzzle_date, identity):
    day = _normalize_date(puzzle_date)
    if day is None:
        return jsonify({'error': 'puzzle_date must be YYYY-MM-DD'}), 400
    scope = request.args.get('scope') or None
    entries = fetch_entries(day, scope_key=scope)
    own = next((e for e in entries if e.identity == identity), None)
    if own is None:
        return jsonify({'error': 'No submission for this player and date'}), 404

    ranked = rank_entries(entries)
    window = []
    for rank, entry in surrounding(ranked, identity):
        window.append(dict(entry.to_dict(), rank=rank))
    return jsonify({
        'puzzle_date': day,
        'entry': own.to_dict(),
        'rank': rank_of(identity, ranked),
        'total_entries': len(entries),
        'percentile': percentile(own.guesses_used, own.won, entries),
        'surrounding': window,
    })
