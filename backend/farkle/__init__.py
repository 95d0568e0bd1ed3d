from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def get_room_manager():
    """Room manager of the running app."""
    return current_app.extensions['farkle']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One room store per app, looked up through app.extensions
    from farkle.services.rooms import RoomManager
    flask_app.extensions['farkle'] = RoomManager.from_config(flask_app.config)

    from farkle.main import main
    flask_app.register_blueprint(main)

    from farkle.socketio_events import register_socketio_handlers
    register_socketio_handlers(
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'),
        testing=flask_app.config.get('TESTING', False),
    )

    @click.command('score')
    @click.argument('faces', nargs=-1, type=click.IntRange(1, 6))
    def score_command(faces):
        """Score a selection of dice, e.g. `flask score 1 1 1 5`."""
        from farkle.services.scoring import score_selection
        result = score_selection(list(faces))
        if not result.valid:
            click.echo(f'Invalid: {result.breakdown}')
            click.get_current_context().exit(1)
        click.echo(f'{result.points} ({result.breakdown})')

    @click.command('rooms')
    def rooms_command():
        """List live tables."""
        manager = flask_app.extensions['farkle']
        for room in manager.rooms:
            names = ', '.join(s.name for s in room.seats if s) or '-'
            click.echo(f'{room.code}  {room.game.phase:<9}  {names}')

    flask_app.cli.add_command(score_command)
    flask_app.cli.add_command(rooms_command)

    return flask_app
