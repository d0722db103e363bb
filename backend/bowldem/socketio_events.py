from flask_socketio import join_room, leave_room, emit
from bowldem import socketio
from bowldem.services.daily.calendar import to_utc_date


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _room_for(data):
    raw = (data or {}).get('puzzle_date')
    if not isinstance(raw, str):
        return None
    try:
        return f"leaderboard:{to_utc_date(raw).isoformat()}"
    except ValueError:
        return None


def handle_join_leaderboard(data):
    room = _room_for(data)
    if room is None:
        emit('error', {'message': 'puzzle_date (YYYY-MM-DD) is required'})
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_leaderboard(data):
    room = _room_for(data)
    if room is None:
        emit('error', {'message': 'puzzle_date (YYYY-MM-DD) is required'})
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace=namespace)
        socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
