from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _cors_origins(configured):
    if not configured or '*' in configured:
        return '*'
    return list(configured)


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    if not flask_app.debug:
        flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _cors_origins(flask_app.config.get('ALLOWED_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from quizlive.services.rooms import BackgroundScheduler, RoomDirectory
    from quizlive.session import SessionCoordinator

    # Rooms live only as long as this process; one directory per app
    if scheduler is None:
        scheduler = BackgroundScheduler(socketio)
    directory = RoomDirectory(
        scheduler,
        duration=flask_app.config['GAME_DURATION_SEC'],
        tick=flask_app.config['TIMER_TICK_SEC'],
        finish_grace=flask_app.config['FINISH_GRACE_SEC'],
        code_length=flask_app.config['ROOM_CODE_LENGTH'],
        max_attempts=flask_app.config['ROOM_CODE_MAX_ATTEMPTS'],
    )
    flask_app.extensions['quizlive'] = SessionCoordinator(directory, scheduler)

    from quizlive.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers on the configured namespace
    from quizlive.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app.config['SOCKETIO_NAMESPACE'])

    @click.command('serve')
    @click.option('--host', default=None, help='Interface to bind (defaults to HOST).')
    @click.option('--port', default=None, type=int, help='Port to listen on (defaults to PORT).')
    def serve_command(host, port):
        """Run the quiz Socket.IO server."""
        host = host or flask_app.config['HOST']
        port = port or flask_app.config['PORT']
        click.echo(f'Quiz server listening on {host}:{port} (namespace {flask_app.config["SOCKETIO_NAMESPACE"]})')
        try:
            socketio.run(flask_app, host=host, port=port, allow_unsafe_werkzeug=True)
        finally:
            flask_app.extensions['quizlive'].shutdown()

    flask_app.cli.add_command(serve_command)

    return flask_app
