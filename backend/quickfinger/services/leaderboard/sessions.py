import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional


@dataclass
class Session:
    sid: str
    rate_window: Deque[float] = field(default_factory=deque)


class SessionRegistry:
    """Open sessions keyed by Socket.IO sid.

    Sessions are created on connect and dropped on disconnect; their
    rate-limit windows go with them.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, sid: str) -> bool:
        with self._lock:
            return sid in self._sessions

    def register(self, sid: str) -> Session:
        session = Session(sid=sid)
        with self._lock:
            self._sessions[sid] = session
        return session

    def unregister(self, sid: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(sid, None)

    def get(self, sid: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(sid)

    def sids(self) -> List[str]:
        """Snapshot of the live sids, safe to iterate while sessions come and go."""
        with self._lock:
            return list(self._sessions)
