"""Client-side reconnection state machine.

Two nested timers drive recovery after a dropped connection:

- the *outer cycle* fires every 5 minutes and opens a reconnect window;
- a *reconnect window* attempts a connection immediately, then every 3
  seconds, and closes itself after 60 seconds whatever the outcome.

Only one cycle timer and one window (attempt timer + window deadline) can
be armed per controller. Every ``start_*`` call is a no-op when its timer
already exists, so repeated disconnect events never multiply traffic.
"""

import enum
import functools
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

CYCLE_INTERVAL_SEC = 300.0
ATTEMPT_INTERVAL_SEC = 3.0
WINDOW_DURATION_SEC = 60.0


class ReconnectState(enum.Enum):
    CONNECTED = 'connected'
    DISCONNECTED_IDLE = 'disconnected_idle'
    CYCLING = 'cycling'
    ATTEMPTING = 'attempting'


class _RepeatingTimer(threading.Thread):

    def __init__(self, interval: float, callback: Callable[[], None]):
        super().__init__(daemon=True)
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()

    def run(self):
        while not self._cancelled.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("repeating timer callback failed")

    def cancel(self):
        self._cancelled.set()


class ThreadTimers:
    """Default timer facility backed by daemon threads."""

    def call_later(self, delay: float, callback: Callable[[], None]):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]):
        timer = _RepeatingTimer(interval, callback)
        timer.start()
        return timer


class ReconnectController:
    """Drives ``attempt`` through reconnect cycles until told it connected.

    ``attempt`` should try to open a connection and return promptly; its
    outcome is reported back through ``connection_opened`` or
    ``connection_lost``.
    """

    def __init__(self, attempt: Callable[[], None], timers=None,
                 cycle_interval: float = CYCLE_INTERVAL_SEC,
                 attempt_interval: float = ATTEMPT_INTERVAL_SEC,
                 window_duration: float = WINDOW_DURATION_SEC,
                 clock: Callable[[], float] = time.time):
        self._attempt = attempt
        self._timers = timers or ThreadTimers()
        self.cycle_interval = cycle_interval
        self.attempt_interval = attempt_interval
        self.window_duration = window_duration
        self._clock = clock

        self._lock = threading.RLock()
        self._cycle_timer = None
        self._attempt_timer = None
        self._window_timer = None
        self._window_id = 0
        self._disposed = False
        self.state = ReconnectState.DISCONNECTED_IDLE
        self.last_attempt_at: Optional[float] = None

    @property
    def cycle_active(self) -> bool:
        return self._cycle_timer is not None

    @property
    def window_active(self) -> bool:
        return self._attempt_timer is not None

    @property
    def is_reconnecting(self) -> bool:
        return self.state is ReconnectState.ATTEMPTING

    def connection_lost(self) -> None:
        """Connection closed or failed to open; arm the cycle if needed."""
        with self._lock:
            if self._disposed:
                return
            if self.state is ReconnectState.CONNECTED:
                self.state = ReconnectState.DISCONNECTED_IDLE
        self.start_cycle()

    def connection_opened(self) -> None:
        """The only way back to CONNECTED: cancel everything."""
        with self._lock:
            if self._disposed:
                return
            self._cancel_all()
            self.state = ReconnectState.CONNECTED
        logger.info("Reconnection succeeded")

    def start_cycle(self) -> None:
        with self._lock:
            if self._disposed or self._cycle_timer is not None:
                return
            logger.info(f"Starting reconnect cycle (every {self.cycle_interval}s)")
            self._cycle_timer = self._timers.call_every(self.cycle_interval, self._on_cycle_tick)
            self.state = ReconnectState.CYCLING
        self.start_window()

    def start_window(self) -> None:
        with self._lock:
            if self._disposed or self._attempt_timer is not None:
                return
            logger.info(f"Starting reconnect attempts window for {self.window_duration}s")
            self.state = ReconnectState.ATTEMPTING
            # Arm before the first attempt: a synchronous success must find
            # these timers in place to cancel them
            self._attempt_timer = self._timers.call_every(self.attempt_interval, self._on_attempt_tick)
            self._window_id += 1
            self._window_timer = self._timers.call_later(
                self.window_duration, functools.partial(self._end_window, self._window_id))
        self._on_attempt_tick()

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True
            self._cancel_all()
            self.state = ReconnectState.DISCONNECTED_IDLE

    def _on_cycle_tick(self) -> None:
        self.start_window()

    def _on_attempt_tick(self) -> None:
        with self._lock:
            if self._disposed or self.state is not ReconnectState.ATTEMPTING:
                return
            self.last_attempt_at = self._clock()
        logger.debug("Attempting to reconnect...")
        self._attempt()

    def _end_window(self, window_id: int) -> None:
        with self._lock:
            if window_id != self._window_id or self._attempt_timer is None:
                return
            logger.info("Reconnect attempts window ended")
            self._attempt_timer.cancel()
            self._attempt_timer = None
            self._window_timer = None
            if self._cycle_timer is not None:
                self.state = ReconnectState.CYCLING
            else:
                self.state = ReconnectState.DISCONNECTED_IDLE

    def _cancel_all(self) -> None:
        for timer in (self._cycle_timer, self._attempt_timer, self._window_timer):
            if timer is not None:
                timer.cancel()
        self._cycle_timer = None
        self._attempt_timer = None
        self._window_timer = None
