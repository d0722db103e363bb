from flask import Blueprint, jsonify, request, current_app
from bowldem.services.daily.calendar import format_countdown, to_utc_date
from bowldem.services.runtime import session_for


play = Blueprint('play', __name__)

# HTTP status for each way a guess can be refused
_REJECTION_STATUS = {
    'unknown_candidate': 404,
    'duplicate_guess': 409,
    'unavailable_date': 400,
}


def _parse_date(raw):
    if not isinstance(raw, str):
        return None
    try:
        return to_utc_date(raw)
    except (TypeError, ValueError):
        return None


def _slot_payload(session, state):
    return {
        'state': state.to_dict(),
        'attempts_remaining': state.attempts_remaining(session.max_guesses),
        'feedback': [f.to_dict() for f in session.feedback_history(state)],
    }


@play.route('/<string:identity>/state', methods=['GET'])
def get_state(identity):
    session = session_for(identity)
    puzzle_date = request.args.get('puzzle_date')
    if puzzle_date:
        day = _parse_date(puzzle_date)
        if day is None:
            return jsonify({'error': 'puzzle_date must be YYYY-MM-DD'}), 400
        return jsonify(_slot_payload(session, session.archive_state(day)))

    can_play, reason, _ = session.play_status()
    daily = session.today_puzzle()
    state = session.today_state()
    payload = _slot_payload(session, state) if state.puzzle_date == daily.puzzle_date.isoformat() else {
        'state': None, 'attempts_remaining': session.max_guesses, 'feedback': [],
    }
    payload.update({
        'can_play': can_play,
        'reason': reason,
        'today': daily.to_dict(),
        'next_puzzle_in': format_countdown(session.clock.until_next_puzzle()),
        'debug_offset': session.debug_offset,
    })
    return jsonify(payload)


@play.route('/<string:identity>/guess', methods=['POST'])
def submit_guess(identity):
    data = request.get_json(silent=True) or {}
    candidate_id = data.get('candidate_id')
    if not candidate_id:
        return jsonify({'error': 'candidate_id is required'}), 400
    puzzle_date = data.get('puzzle_date')
    if puzzle_date is not None:
        puzzle_date = _parse_date(puzzle_date)
        if puzzle_date is None:
            return jsonify({'error': 'puzzle_date must be YYYY-MM-DD'}), 400

    outcome = session_for(identity).submit_guess(str(candidate_id), puzzle_date=puzzle_date)
    if outcome.rejection is not None:
        return jsonify(outcome.to_dict()), _REJECTION_STATUS.get(outcome.rejection.reason, 400)
    current_app.logger.info(
        f"[play] identity={identity} candidate={candidate_id} accepted={outcome.accepted} status={outcome.state.status}"
    )
    return jsonify(outcome.to_dict())


@play.route('/<string:identity>/acknowledge', methods=['POST'])
def acknowledge_result(identity):
    state = session_for(identity).acknowledge_result()
    return jsonify({'state': state.to_dict()})


@play.route('/<string:identity>/stats', methods=['GET'])
def get_stats(identity):
    return jsonify(session_for(identity).stats().to_dict())


@play.route('/<string:identity>/archive', methods=['GET'])
def get_archive(identity):
    days = session_for(identity).archive()
    return jsonify({'days': [d.to_dict() for d in days]})


@play.route('/<string:identity>/debug-offset', methods=['POST'])
def change_debug_offset(identity):
    if not current_app.config.get('DEBUG_MODE'):
        return jsonify({'error': 'Not found'}), 404
    data = request.get_json(silent=True) or {}
    session = session_for(identity)
    if data.get('reset'):
        offset = session.reset_debug_date()
    else:
        try:
            delta = int(data.get('delta', 0))
        except (TypeError, ValueError):
            return jsonify({'error': 'delta must be an integer'}), 400
        offset = session.change_debug_date(delta)
    return jsonify({
        'debug_offset': offset,
        'effective_date': session.effective_date().isoformat(),
        'puzzle_number': session.clock.puzzle_number(),
    })


@play.route('/<string:identity>', methods=['DELETE'])
def clear_player(identity):
    session_for(identity).clear_all_data()
    current_app.logger.info(f"[clear] identity={identity}")
    return jsonify({'success': True})
