import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from quickfinger.models import Number, Player

logger = logging.getLogger(__name__)

TOP_PLAYERS_LIMIT = 20


@dataclass(frozen=True)
class SubmitResult:
    updated: bool
    player: Optional[Player] = None


class LeaderboardStore:
    """Authoritative nickname -> best-score mapping.

    All mutations go through ``submit`` under a single lock, so bursts of
    submissions for the same nickname always leave the highest one stored.
    """

    def __init__(self):
        self._players: Dict[str, Player] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._players)

    def get(self, nickname: str) -> Optional[Player]:
        with self._lock:
            return self._players.get(nickname)

    def submit(self, nickname: str, score: Number, framework: str) -> SubmitResult:
        """Store ``score`` if it beats the nickname's current best.

        A score that does not beat the existing record is a silent no-op.
        """
        with self._lock:
            existing = self._players.get(nickname)
            if existing is not None and score <= existing.score:
                logger.debug(f"[score-stale] {nickname}: {score} not higher than {existing.score}")
                return SubmitResult(updated=False, player=existing)
            player = Player(nickname=nickname, score=score, framework=framework)
            self._players[nickname] = player
        logger.info(f"[score-update] {nickname} = {score} ({framework})")
        return SubmitResult(updated=True, player=player)

    def top_players(self, limit: int = TOP_PLAYERS_LIMIT) -> List[Player]:
        # sorted() is stable: equal scores keep insertion order
        with self._lock:
            players = list(self._players.values())
        players.sort(key=lambda p: p.score, reverse=True)
        return players[:max(0, limit)]
