"""Client side of the leaderboard: connection, reconnection and standings."""

from .connection import LeaderboardClient
from .reconnect import ReconnectController, ReconnectState, ThreadTimers
from .standings import Standings

__all__ = ['LeaderboardClient', 'ReconnectController', 'ReconnectState', 'Standings', 'ThreadTimers']
