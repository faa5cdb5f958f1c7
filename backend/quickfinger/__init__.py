from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One store and one session registry per app, for the life of the process
    from quickfinger.services.leaderboard import LeaderboardStore, RateLimiter, SessionRegistry
    store = LeaderboardStore()
    registry = SessionRegistry()
    limiter = RateLimiter()
    flask_app.extensions['leaderboard_store'] = store
    flask_app.extensions['session_registry'] = registry
    flask_app.extensions['rate_limiter'] = limiter

    from quickfinger.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from quickfinger.socketio_events import register_socketio_handlers
    flask_app.extensions['leaderboard_handlers'] = register_socketio_handlers(store, registry, limiter)

    return flask_app
