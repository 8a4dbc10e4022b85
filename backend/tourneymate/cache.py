"""Redis client and key layout for the ephemeral stores."""

from __future__ import annotations

from enum import Enum

import redis.asyncio as redis

from .config import REDIS_SOCKET_TIMEOUT, REDIS_URL

KEY_PREFIX = "tm"
GLOBAL_CHAT = f"{KEY_PREFIX}:chat:global"


class DecodePolicy(str, Enum):
    """What a store does with a cached value it cannot decode.

    ``DROP`` discards the value: list reads skip it and single-value reads
    treat the key as absent. ``RAISE`` fails the read with
    ``StoreUnavailable``.
    """

    DROP = "drop"
    RAISE = "raise"


def leaderboard_key(tournament_id: str) -> str:
    return f"{KEY_PREFIX}:lb:{tournament_id}"


def tournament_chat_key(tournament_id: str) -> str:
    return f"{KEY_PREFIX}:chat:tournament:{tournament_id}"


def session_key(token: str) -> str:
    return f"{KEY_PREFIX}:sess:{token}"


def rate_limit_key(scope: str, identifier: str) -> str:
    return f"{KEY_PREFIX}:rl:{scope}:{identifier}"


# redis-py connects lazily, so building the client at import time is free.
redis_client: redis.Redis = redis.from_url(
    REDIS_URL,
    decode_responses=True,
    socket_timeout=REDIS_SOCKET_TIMEOUT,
    socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
)


def get_redis() -> redis.Redis:
    return redis_client
