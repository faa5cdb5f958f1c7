import json
import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError, SocketIOError

from quickfinger.client.reconnect import ReconnectController
from quickfinger.client.standings import Standings
from quickfinger.models import (
    LEADERBOARD_UPDATE, NAMESPACE, PING, SCORE_SUBMIT, Player, parse_frame,
)

logger = logging.getLogger(__name__)

DEFAULT_URL = 'http://localhost:8080'

Handler = Callable[[Optional[Dict[str, Any]]], None]


class LeaderboardClient:
    """Persistent connection to the leaderboard server.

    Exposes ``connected``, ``error``, ``is_reconnecting`` and ``players``
    for a UI to render, plus one handler per inbound message type. Dropped
    connections are recovered by a ReconnectController; transport failures
    never raise out of this class.
    """

    def __init__(self, url: Optional[str] = None, nickname: str = '',
                 sio=None, timers=None, namespace: str = NAMESPACE):
        self.url = url or os.environ.get('LEADERBOARD_URL', DEFAULT_URL)
        self.namespace = namespace
        self.connected = False
        self.error: Optional[str] = None
        self.standings = Standings(nickname)

        self._handlers: Dict[str, Handler] = {}
        self._closed = False
        self._attempt_lock = threading.Lock()

        self._sio = sio if sio is not None else socketio.Client(reconnection=False)
        self._sio.on('connect', self._on_connect, namespace=namespace)
        self._sio.on('disconnect', self._on_disconnect, namespace=namespace)
        self._sio.on('connect_error', self._on_connect_error, namespace=namespace)
        self._sio.on('message', self._on_frame, namespace=namespace)

        self.reconnect = ReconnectController(self._attempt_connect, timers=timers)

    @property
    def is_reconnecting(self) -> bool:
        return self.reconnect.is_reconnecting

    @property
    def players(self) -> List[Player]:
        return self.standings.players

    def connect(self) -> None:
        self._attempt_connect()

    def on_message(self, msg_type: str, handler: Handler) -> None:
        """Register the handler for ``msg_type``, replacing any previous one."""
        self._handlers[msg_type] = handler

    def send(self, message: Dict[str, Any]) -> bool:
        if self._closed or not self.connected:
            logger.warning(f"Socket not connected; dropping {message.get('type')}")
            return False
        try:
            self._sio.send(json.dumps(message), namespace=self.namespace)
        except SocketIOError as exc:
            logger.error(f"Failed to send {message.get('type')}: {exc}")
            self.error = 'Connection error'
            return False
        return True

    def submit_score(self, nickname: str, score, framework: str) -> bool:
        return self.send({
            'type': SCORE_SUBMIT,
            'payload': {'nickname': nickname, 'score': score, 'framework': framework},
        })

    def ping(self) -> bool:
        return self.send({'type': PING})

    def close(self) -> None:
        """Cancel reconnection, drop handlers and close the socket, once."""
        if self._closed:
            return
        self._closed = True
        self.reconnect.dispose()
        self._handlers.clear()
        was_connected = self.connected
        self.connected = False
        if was_connected:
            self._disconnect_quietly()

    def _disconnect_quietly(self) -> None:
        try:
            self._sio.disconnect()
        except Exception as exc:
            logger.error(f"Failed to disconnect gracefully: {exc}")

    def _attempt_connect(self) -> None:
        if self._closed or self.connected:
            return
        # A slow attempt may still be running when the next tick fires
        if not self._attempt_lock.acquire(blocking=False):
            return
        failed = False
        try:
            self._sio.connect(self.url, namespaces=[self.namespace], transports=['websocket'])
        except SocketConnectionError as exc:
            logger.warning(f"Connection failed: {exc}")
            self.error = 'Failed to connect'
            failed = True
        else:
            if self._closed:
                # close() ran while connect() was in flight; nobody owns this socket
                self._disconnect_quietly()
        finally:
            self._attempt_lock.release()
        # Reported after releasing the lock so the window's first attempt can run
        if failed:
            self._mark_disconnected()

    def _mark_disconnected(self) -> None:
        self.connected = False
        if not self._closed:
            self.reconnect.connection_lost()

    def _on_connect(self) -> None:
        if self._closed:
            return
        logger.info("Socket connected")
        self.connected = True
        self.error = None
        self.reconnect.connection_opened()

    def _on_disconnect(self, *args) -> None:
        if self._closed:
            return
        logger.info("Socket disconnected")
        self._mark_disconnected()

    def _on_connect_error(self, data=None) -> None:
        logger.error(f"Socket error: {data}")
        self.error = 'Connection error'

    def _on_frame(self, data) -> None:
        if self._closed:
            return
        try:
            message = parse_frame(data)
        except ValueError as exc:
            logger.error(f"Failed to parse message: {exc}")
            return

        msg_type = message.get('type')
        payload = message.get('payload')
        if msg_type == LEADERBOARD_UPDATE and isinstance(payload, dict):
            try:
                players = [Player.from_dict(p) for p in payload.get('players') or []]
            except (KeyError, TypeError, ValueError) as exc:
                logger.error(f"Malformed leaderboard snapshot: {exc}")
                return
            self.standings.update(players)

        handler = self._handlers.get(msg_type)
        if handler is not None:
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Handler for {msg_type} failed")
