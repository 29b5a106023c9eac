import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config
from partyroom.registry import RoomRegistry
from partyroom.services.scheduler import BackgroundScheduler

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)
registry = RoomRegistry()


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    logging.basicConfig(
        level=flask_app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from partyroom.socketio_events import broadcaster, register_socketio_handlers
    registry.init_app(
        flask_app,
        scheduler=scheduler or BackgroundScheduler(socketio, flask_app),
        listener=broadcaster,
    )

    from partyroom.main import main
    flask_app.register_blueprint(main)

    from partyroom.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Idle sweep runs on a background task; tests drive it by hand
    if not flask_app.config.get('TESTING', False):
        registry.start_sweeper()

    return flask_app
