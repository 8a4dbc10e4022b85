"""Size limits for caller-supplied counts.

A missing or non-positive value takes the default; anything above the ceiling
is cut down to it.
"""

from __future__ import annotations

from typing import NamedTuple


class Limit(NamedTuple):
    default: int
    ceiling: int

    def clamp(self, value: int | None) -> int:
        return clamp(value, self.default, self.ceiling)


def clamp(value: int | None, default: int, ceiling: int) -> int:
    if value is None or value <= 0:
        return default
    return min(value, ceiling)


HOME_TOP_N = Limit(default=5, ceiling=50)
DETAIL_TOP_N = Limit(default=10, ceiling=50)
HOME_CHAT_N = Limit(default=30, ceiling=200)
DETAIL_CHAT_N = Limit(default=50, ceiling=200)
CHAT_KEEP_LAST = Limit(default=200, ceiling=2000)
CHAT_READ_COUNT = Limit(default=50, ceiling=500)
