from typing import List, Optional

from quickfinger.models import Player

TOP_PLAYERS_LIMIT = 20


class Standings:
    """Client-side view of the last leaderboard snapshot."""

    def __init__(self, nickname: str = ''):
        self.players: List[Player] = []
        self.nickname = nickname

    def update(self, players: List[Player]) -> None:
        self.players = list(players)

    @property
    def top_players(self) -> List[Player]:
        return sorted(self.players, key=lambda p: p.score, reverse=True)[:TOP_PLAYERS_LIMIT]

    def rank_of(self, nickname: Optional[str] = None) -> Optional[int]:
        """1-based position of ``nickname`` in the snapshot, or None."""
        nickname = nickname or self.nickname
        if not nickname:
            return None
        for index, player in enumerate(self.players):
            if player.nickname == nickname:
                return index + 1
        return None

    def score_of(self, nickname: Optional[str] = None):
        nickname = nickname or self.nickname
        if not nickname:
            return None
        for player in self.players:
            if player.nickname == nickname:
                return player.score
        return None
