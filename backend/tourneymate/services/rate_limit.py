from __future__ import annotations

import redis.asyncio as redis

from ..cache import rate_limit_key


class RateLimitStore:
    """Fixed-window counters: at most ``max_hits`` per ``window_seconds``."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    async def allow(
        self, scope: str, identifier: str, max_hits: int, window_seconds: int
    ) -> bool:
        key = rate_limit_key(scope, identifier)
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, window_seconds)
        return count <= max_hits
