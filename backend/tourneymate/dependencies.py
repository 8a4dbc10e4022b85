"""FastAPI dependency providers for the stores.

Tests replace these through ``app.dependency_overrides`` or by swapping
``cache.redis_client`` / ``graph.graph``.
"""

from . import cache
from .graph import GraphStore, get_graph
from .services.chat import ChatStore
from .services.leaderboard import LeaderboardStore
from .services.rate_limit import RateLimitStore
from .services.sessions import SessionStore


def graph_store() -> GraphStore:
    return get_graph()


def leaderboard_store() -> LeaderboardStore:
    return LeaderboardStore(cache.get_redis())


def chat_store() -> ChatStore:
    return ChatStore(cache.get_redis())


def session_store() -> SessionStore:
    return SessionStore(cache.get_redis())


def rate_limit_store() -> RateLimitStore:
    return RateLimitStore(cache.get_redis())
