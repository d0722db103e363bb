from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or Config.ALLOWED_ORIGINS

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from bowldem.main import main
    flask_app.register_blueprint(main)

    from bowldem.api.puzzles import puzzles
    from bowldem.api.play import play
    from bowldem.api.leaderboard import leaderboard
    flask_app.register_blueprint(puzzles, url_prefix='/api')
    flask_app.register_blueprint(play, url_prefix='/api/play')
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    # Bind handlers to the initialized socketio instance
    from bowldem.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from bowldem.services.daily.errors import CatalogEmpty

    @flask_app.errorhandler(CatalogEmpty)
    def handle_catalog_empty(exc):
        flask_app.logger.error(f"[catalog-empty] {exc}")
        return jsonify({'error': 'No puzzles available, cannot start'}), 503

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        import bowldem.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('puzzle-today')
    def puzzle_today_command():
        """Prints today's puzzle number and catalog slot."""
        from bowldem.services.daily.calendar import format_countdown
        from bowldem.services.daily.selector import select_puzzle
        from bowldem.services.runtime import get_catalog, server_clock
        with flask_app.app_context():
            clock = server_clock(flask_app)
            number = clock.puzzle_number()
            puzzle, index = select_puzzle(number, get_catalog(flask_app))
            print(f"#{number + 1} date={clock.today().isoformat()} puzzle={puzzle.id} index={index} "
                  f"next_in={format_countdown(clock.until_next_puzzle())}")

    @click.command('local-guess')
    @click.argument('identity')
    @click.argument('candidate_id')
    def local_guess_command(identity, candidate_id):
        """Plays one guess from this machine, keeping state in STATE_DIR."""
        from bowldem.services.runtime import local_session
        with flask_app.app_context():
            outcome = local_session(identity, flask_app).submit_guess(candidate_id)
            if outcome.rejection is not None:
                print(f"rejected: {outcome.rejection.reason}")
            elif outcome.feedback is None:
                print(f"game already {outcome.state.status}")
            else:
                attrs = outcome.feedback.to_dict()['attributes']
                marks = ' '.join(f"{k}={'Y' if v else 'n'}" for k, v in attrs.items())
                print(f"{candidate_id}: {marks} [{outcome.state.status}]")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(puzzle_today_command)
    flask_app.cli.add_command(local_guess_command)

    return flask_app
