import os
import sys

import pytest
from sqlalchemy import func, select

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from seed import TEAMS, TOURNAMENTS, USERS, seed_graph
from tourneymate.models import Captaincy, Player, Team, Tournament, User


@pytest.fixture
def anyio_backend():
    return "asyncio"


async def _count(store, model) -> int:
    row = await store.query_one(select(func.count()).select_from(model))
    return row[0]


@pytest.mark.anyio
async def test_seed_is_idempotent(fresh_stores):
    store, _ = fresh_stores

    await seed_graph(store)
    await seed_graph(store)

    assert await _count(store, User) == len(USERS)
    assert await _count(store, Player) == len(USERS)
    assert await _count(store, Tournament) == len(TOURNAMENTS)
    assert await _count(store, Team) == len(TEAMS)
    assert await _count(store, Captaincy) == len(TEAMS)
