import logging
import os
import signal
import sys
import threading
from typing import Callable

from quickfinger.models import NAMESPACE

logger = logging.getLogger(__name__)


class GracefulShutdown:
    """SIGTERM/SIGINT handler: close every session, then stop the server.

    A watchdog forces ``force_exit(1)`` if closing sessions takes longer
    than ``grace_sec``. On a clean close ``exit(0)`` raises SystemExit,
    which unwinds ``socketio.run`` and releases the listening socket.
    """

    def __init__(self, socketio, registry, grace_sec: float = 5.0,
                 exit: Callable[[int], None] = sys.exit,
                 force_exit: Callable[[int], None] = os._exit):
        self.socketio = socketio
        self.registry = registry
        self.grace_sec = grace_sec
        self._exit = exit
        self._force_exit = force_exit
        self._started = False
        self._lock = threading.Lock()

    def install(self) -> None:
        signal.signal(signal.SIGTERM, self)
        signal.signal(signal.SIGINT, self)

    def __call__(self, signum=None, frame=None) -> None:
        with self._lock:
            if self._started:
                return
            self._started = True
        logger.info(f"[shutdown] signal={signum} closing {len(self.registry)} sessions")

        watchdog = threading.Timer(self.grace_sec, self._on_timeout)
        watchdog.daemon = True
        watchdog.start()

        self.close_sessions()

        watchdog.cancel()
        logger.info("[shutdown] server closed")
        self._exit(0)

    def close_sessions(self) -> None:
        for sid in self.registry.sids():
            try:
                self.socketio.server.disconnect(sid, namespace=NAMESPACE)
            except Exception as exc:
                logger.warning(f"[shutdown] failed to close sid={sid}: {exc}")
            self.registry.unregister(sid)

    def _on_timeout(self) -> None:
        logger.error(f"[shutdown] forced after {self.grace_sec}s")
        self._force_exit(1)
