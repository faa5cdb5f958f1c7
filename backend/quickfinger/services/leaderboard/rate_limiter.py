"""
Per-session sliding-window rate limiting for score submissions.

Each session keeps the timestamps of its recently allowed requests; there
is no shared budget between sessions.
"""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW_SEC = 10.0
MAX_REQUESTS_PER_WINDOW = 10


class RateLimiter:

    def __init__(self, limit: int = MAX_REQUESTS_PER_WINDOW, window: float = RATE_LIMIT_WINDOW_SEC,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window
        self.clock = clock
        self._lock = threading.Lock()

    def allow(self, session) -> bool:
        """Record a request for ``session`` if it still has budget.

        A denied request leaves the window untouched.
        """
        now = self.clock()
        with self._lock:
            requests = session.rate_window
            # Drop requests that have aged out of the window
            while requests and now - requests[0] >= self.window:
                requests.popleft()
            if len(requests) >= self.limit:
                logger.warning(f"[rate-limit] sid={session.sid} {len(requests)} requests in {self.window}s")
                return False
            requests.append(now)
            return True
