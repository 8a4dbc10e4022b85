"""Per-tournament score tables kept in Redis sorted sets."""

from __future__ import annotations

from dataclasses import dataclass

import redis.asyncio as redis

from ..cache import leaderboard_key


@dataclass(frozen=True)
class LeaderboardEntry:
    team_id: str
    score: float


class LeaderboardStore:
    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    async def add_or_update_score(
        self, tournament_id: str, team_id: str, score: float
    ) -> None:
        """Set ``team_id``'s score; the last write wins, even if lower."""

        await self._redis.zadd(leaderboard_key(tournament_id), {team_id: float(score)})

    async def top(self, tournament_id: str, n: int) -> list[LeaderboardEntry]:
        """Return up to ``n`` entries, highest score first.

        Teams with equal scores are ordered by team id. Members tied with the
        n-th score are fetched as well so the cut does not depend on Redis'
        internal ordering of equal scores.
        """

        if n <= 0:
            return []

        key = leaderboard_key(tournament_id)
        head = await self._redis.zrevrange(key, 0, n - 1, withscores=True)
        if not head:
            return []

        scores = {member: float(score) for member, score in head}
        if len(head) == n:
            boundary = float(head[-1][1])
            tied = await self._redis.zrangebyscore(
                key, boundary, boundary, withscores=True
            )
            scores.update({member: float(score) for member, score in tied})

        ordered = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        return [LeaderboardEntry(team_id=m, score=s) for m, s in ordered[:n]]
