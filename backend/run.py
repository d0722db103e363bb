from bowldem import create_app, socketio
from bowldem.services.rollover import schedule_rollover

app = create_app()

if __name__ == '__main__':
    schedule_rollover(app)
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
