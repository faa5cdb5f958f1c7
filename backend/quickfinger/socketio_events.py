import threading

from flask import current_app, request
from flask_socketio import send

from quickfinger import socketio
from quickfinger.models import (
    NAMESPACE, PING, PONG, SCORE_SUBMIT, error_frame, leaderboard_frame, make_frame, parse_frame,
)
from quickfinger.services.leaderboard import (
    LeaderboardStore, RateLimiter, SessionRegistry, ValidationError, validate_submission,
)

RATE_LIMIT_MESSAGE = 'Rate limit exceeded. Please slow down.'
INVALID_FORMAT_MESSAGE = 'Invalid message format'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


class LeaderboardSocketHandlers:
    """Socket.IO handlers for the leaderboard namespace.

    Owns no leaderboard state: the store, registry and limiter are handed
    in by ``create_app`` and live as long as the app does.
    """

    def __init__(self, store: LeaderboardStore, registry: SessionRegistry, limiter: RateLimiter):
        self.store = store
        self.registry = registry
        self.limiter = limiter
        # Held across snapshot and send so an older snapshot never lands last
        self._broadcast_lock = threading.Lock()

    def handle_connect(self, auth=None):
        session = self.registry.register(_get_sid())
        current_app.logger.info(f"[session-open] sid={session.sid} total={len(self.registry)}")
        # New and reconnecting clients never start from a blank board
        send(leaderboard_frame(self.store.top_players()))

    def handle_disconnect(self, *args):
        session = self.registry.unregister(_get_sid())
        if session:
            current_app.logger.info(f"[session-close] sid={session.sid} total={len(self.registry)}")

    def handle_message(self, data):
        try:
            message = parse_frame(data)
        except ValueError as exc:
            current_app.logger.warning(f"[bad-frame] sid={_get_sid()} {exc}")
            send(error_frame(INVALID_FORMAT_MESSAGE))
            return

        msg_type = message.get('type')
        if msg_type == PING:
            send(make_frame(PONG))
        elif msg_type == SCORE_SUBMIT:
            self._handle_score_submit(message.get('payload'))
        else:
            current_app.logger.warning(f"[unknown-type] sid={_get_sid()} type={msg_type!r}")

    def _handle_score_submit(self, payload) -> None:
        session = self.registry.get(_get_sid())
        if session is None:
            return
        if not self.limiter.allow(session):
            send(error_frame(RATE_LIMIT_MESSAGE))
            return
        try:
            submission = validate_submission(payload)
        except ValidationError as exc:
            current_app.logger.info(f"[score-reject] sid={session.sid} {exc}")
            send(error_frame(str(exc)))
            return

        result = self.store.submit(submission.nickname, submission.score, submission.framework)
        if result.updated:
            self.broadcast_leaderboard()

    def broadcast_leaderboard(self) -> None:
        """Push the current top players to every open session."""
        with self._broadcast_lock:
            frame = leaderboard_frame(self.store.top_players())
            for sid in self.registry.sids():
                # sids that closed since the snapshot are simply not delivered to
                socketio.send(frame, to=sid, namespace=NAMESPACE)


def register_socketio_handlers(store: LeaderboardStore, registry: SessionRegistry,
                               limiter: RateLimiter) -> LeaderboardSocketHandlers:
    """Register Socket.IO event handlers on namespace '/ws'.

    Text frames arrive as 'message' events; clients that send a decoded
    object use the 'json' event and land in the same dispatcher.
    """
    handlers = LeaderboardSocketHandlers(store, registry, limiter)
    socketio.on_event('connect', handlers.handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handlers.handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('message', handlers.handle_message, namespace=NAMESPACE)
    socketio.on_event('json', handlers.handle_message, namespace=NAMESPACE)
    return handlers
