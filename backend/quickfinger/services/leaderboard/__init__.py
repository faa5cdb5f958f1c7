"""Leaderboard domain services: store, input validation, rate limiting
and the session registry.

Socket handlers import these; nothing in here knows about Flask or
Socket.IO, so each piece can be exercised without a live server.
"""

from .rate_limiter import RateLimiter
from .sessions import Session, SessionRegistry
from .store import LeaderboardStore, SubmitResult
from .validation import ScoreSubmission, ValidationError, validate_submission

__all__ = [
    'LeaderboardStore',
    'RateLimiter',
    'ScoreSubmission',
    'Session',
    'SessionRegistry',
    'SubmitResult',
    'ValidationError',
    'validate_submission',
]
