from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

from tapminer.game import TapMinerGame
from tapminer.services.scheduler import SocketIOScheduler
from tapminer.transport import SocketIOTransport

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, scheduler=None, clock=None):
    """Build the Flask app, its Socket.IO transport and the game it serves.

    ``scheduler`` and ``clock`` default to real background tasks and wall
    time; tests pass manual ones to step through rounds.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS', '*')
    CORS(flask_app, origins=origins)
    # Engine.IO pings every session and disconnects those that stop answering
    interval = flask_app.config.get('HEARTBEAT_INTERVAL_SEC', 30)
    socketio.init_app(
        flask_app,
        cors_allowed_origins=origins,
        ping_interval=interval,
        ping_timeout=interval * flask_app.config.get('HEARTBEAT_MAX_MISSED', 1),
    )

    from tapminer.routes import main
    flask_app.register_blueprint(main)

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    game = TapMinerGame.from_config(
        flask_app.config,
        SocketIOTransport(socketio, namespace),
        scheduler or SocketIOScheduler(socketio),
        clock=clock,
    )
    flask_app.extensions['tapminer'] = game

    from tapminer.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    flask_app.logger.info(
        f"[app-ready] namespace={namespace} round={game.machine.round_duration_ms}ms "
        f"pause={game.machine.inter_round_delay_ms}ms"
    )
    return flask_app


def get_game(flask_app) -> TapMinerGame:
    return flask_app.extensions['tapminer']
