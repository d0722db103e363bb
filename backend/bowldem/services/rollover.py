import time

from bowldem import socketio
from bowldem.services.runtime import server_clock


def rollover_payload(app) -> dict:
    clock = server_clock(app)
    return {'puzzle_date': clock.today().isoformat(), 'puzzle_number': clock.puzzle_number()}


def schedule_rollover(app) -> None:
    """Announce each new puzzle on '/ws' at UTC midnight.

    - No-ops in TESTING mode
    - Sleeps until the next boundary, optionally logging heartbeats
    - Reschedules itself after every emit
    """
    if app.config.get('TESTING'):
        return

    def _worker():
        while True:
            delay = server_clock(app).until_next_puzzle().total_seconds()
            hb = int(app.config.get('ROLLOVER_HEARTBEAT_SEC', 0) or 0)
            if hb > 0:
                slept = 0.0
                while slept < delay:
                    step = min(hb, delay - slept)
                    time.sleep(step)
                    slept += step
                    app.logger.info(f"[rollover-heartbeat] remaining={max(0, int(delay - slept))}s")
            else:
                time.sleep(delay)
            # Give the wall clock a moment past midnight before reading the new day
            time.sleep(1)
            payload = rollover_payload(app)
            app.logger.info(f"[rollover-fire] date={payload['puzzle_date']} puzzle={payload['puzzle_number']}")
            socketio.emit('puzzle_rollover', payload, namespace='/ws')

    app.logger.info(f"[rollover-set] next_in={int(server_clock(app).until_next_puzzle().total_seconds())}s")
    socketio.start_background_task(_worker)
