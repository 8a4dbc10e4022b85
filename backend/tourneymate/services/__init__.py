"""Application services: cache-backed stores, the application workflow and read views."""

from .authorization import Identity, Role
from .chat import ChatStore
from .leaderboard import LeaderboardEntry, LeaderboardStore
from .rate_limit import RateLimitStore
from .sessions import SessionStore

__all__ = [
    "Identity",
    "Role",
    "ChatStore",
    "LeaderboardEntry",
    "LeaderboardStore",
    "RateLimitStore",
    "SessionStore",
]
