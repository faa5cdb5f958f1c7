import logging

from config import Config
from quickfinger import create_app, socketio
from quickfinger.lifecycle import GracefulShutdown
from quickfinger.models import NAMESPACE

logging.basicConfig(level=Config.LOG_LEVEL, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

app = create_app()

if __name__ == '__main__':
    GracefulShutdown(socketio, app.extensions['session_registry'], grace_sec=Config.SHUTDOWN_GRACE_SEC).install()
    app.logger.info(f"Leaderboard server running on ws://{Config.HOST}:{Config.PORT}{NAMESPACE}")
    socketio.run(app, host=Config.HOST, port=Config.PORT, allow_unsafe_werkzeug=True)
