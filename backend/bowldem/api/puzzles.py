from flask import Blueprint, jsonify, request, current_app
from bowldem.services.daily.calendar import format_countdown
from bowldem.services.daily.scoring import Rejection, score_candidate
from bowldem.services.daily.selector import archive_listing, select_puzzle
from bowldem.services.runtime import get_catalog, server_clock


puzzles = Blueprint('puzzles', __name__)


@puzzles.route('/puzzles/today', methods=['GET'])
def today_puzzle():
    clock = server_clock()
    number = clock.puzzle_number()
    puzzle, index = select_puzzle(number, get_catalog())
    remaining = clock.until_next_puzzle()
    return jsonify({
        'puzzle_number': number,
        'display_number': number + 1,
        'puzzle_index': index,
        'puzzle_date': clock.today().isoformat(),
        'puzzle': puzzle.to_public_dict(),
        'next_puzzle_in_sec': int(remaining.total_seconds()),
        'next_puzzle_in': format_countdown(remaining),
    })


@puzzles.route('/puzzles/archive', methods=['GET'])
def puzzle_archive():
    clock = server_clock()
    days = archive_listing(clock.today(), clock.epoch)
    return jsonify({'days': [d.to_dict() for d in days]})


@puzzles.route('/puzzles/<string:puzzle_id>/validate', methods=['POST'])
def validate_guess(puzzle_id):
    data = request.get_json(silent=True) or {}
    candidate_id = data.get('candidate_id')
    if not candidate_id:
        return jsonify({'error': 'candidate_id is required'}), 400

    catalog = get_catalog()
    puzzle = catalog.puzzle_by_id(puzzle_id)
    if puzzle is None:
        return jsonify({'error': 'Puzzle not found'}), 404

    scored = score_candidate(str(candidate_id), catalog, puzzle)
    if isinstance(scored, Rejection):
        return jsonify({'error': 'Unknown candidate', 'candidate_id': candidate_id}), 404
    current_app.logger.info(f"[validate] puzzle={puzzle_id} candidate={candidate_id} target={scored.is_target}")
    return jsonify(scored.to_dict())


@puzzles.route('/players', methods=['GET'])
def list_players():
    candidates = sorted(get_catalog().candidates.values(), key=lambda c: c.full_name)
    return jsonify({'players': [c.to_dict() for c in candidates]})
