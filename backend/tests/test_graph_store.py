import asyncio
import os
import sys

import pytest
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tourneymate.exceptions import StoreUnavailable
from tourneymate.graph import GraphStore, resolve_database_url
from tourneymate.models import Hosting, Player, Team


@pytest.fixture
def anyio_backend():
    return "asyncio"


def test_resolve_database_url_rewrites_postgres_driver():
    assert (
        resolve_database_url("postgresql://u:p@db/tm")
        == "postgresql+asyncpg://u:p@db/tm"
    )
    assert resolve_database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"


def test_resolve_database_url_requires_a_value(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        resolve_database_url()


@pytest.mark.anyio
async def test_connects_lazily_and_only_once():
    calls = []

    def factory(url, **kwargs):
        calls.append(url)
        return create_async_engine(url, **kwargs)

    store = GraphStore("sqlite+aiosqlite:///:memory:", engine_factory=factory)
    assert not store.connected
    assert calls == []

    await asyncio.gather(*(store.connect() for _ in range(5)))

    assert store.connected
    assert len(calls) == 1
    await store.dispose()
    assert not store.connected


@pytest.mark.anyio
async def test_failed_handshake_leaves_store_disconnected(tmp_path):
    missing_dir = tmp_path / "nope" / "graph.db"
    store = GraphStore(f"sqlite+aiosqlite:///{missing_dir}")

    with pytest.raises(StoreUnavailable):
        await store.connect()
    assert not store.connected

    # The next call tries again instead of reusing a broken engine.
    missing_dir.parent.mkdir()
    await store.connect()
    assert store.connected
    await store.dispose()


@pytest.mark.anyio
async def test_statement_timeout_surfaces_as_store_unavailable(fresh_stores):
    store, _ = fresh_stores
    await store.create_schema()
    store._timeout = 0.05

    async def slow(engine):
        await asyncio.sleep(1)

    with pytest.raises(StoreUnavailable):
        await store._run(slow)


@pytest.mark.anyio
async def test_query_and_mutate_round_trip(fresh_stores):
    store, _ = fresh_stores
    await store.create_schema()

    count = await store.mutate(insert(Team).values(team_id="t1", name="Knights", sport="chess"))
    assert count == 1

    rows = await store.query(select(Team.team_id, Team.name).order_by(Team.team_id))
    assert [(r.team_id, r.name) for r in rows] == [("t1", "Knights")]
    assert await store.query_one(select(Team.name).where(Team.team_id == "zz")) is None


@pytest.mark.anyio
async def test_duplicate_insert_raises_integrity_error(fresh_stores):
    store, _ = fresh_stores
    await store.create_schema()
    await store.mutate(insert(Player).values(player_id="p1", name="A"))

    with pytest.raises(IntegrityError):
        await store.mutate(insert(Player).values(player_id="p1", name="B"))


@pytest.mark.anyio
async def test_merge_creates_once_and_applies_on_match(fresh_stores):
    store, _ = fresh_stores
    await store.create_schema()

    created = await store.merge(
        Hosting,
        {"username": "ana", "tournament_id": "t1"},
        on_create={"role": "Host"},
        on_match={"role": "CoHost"},
    )
    assert created is True
    row = await store.query_one(select(Hosting.role))
    assert row.role == "Host"

    created = await store.merge(
        Hosting,
        {"username": "ana", "tournament_id": "t1"},
        on_create={"role": "Host"},
        on_match={"role": "CoHost"},
    )
    assert created is False
    rows = await store.query(select(Hosting.username, Hosting.role))
    assert [(r.username, r.role) for r in rows] == [("ana", "CoHost")]


@pytest.mark.anyio
async def test_merge_keeps_existing_values_without_on_match(fresh_stores):
    store, _ = fresh_stores
    await store.create_schema()

    await store.merge(Player, {"player_id": "p1"}, on_create={"name": "First"})
    await store.merge(Player, {"player_id": "p1"}, on_create={"name": "Second"})

    row = await store.query_one(select(Player.name).where(Player.player_id == "p1"))
    assert row.name == "First"
