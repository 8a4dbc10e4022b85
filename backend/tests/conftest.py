import asyncio
import os
import sys
from functools import partial

import fakeredis
import fakeredis.aioredis
import pytest
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Login throttling stays off unless a test sets the variable itself.
os.environ.setdefault("DISABLE_AUTH_RATE_LIMITS", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Register every table with the declarative Base before any schema is created.
from tourneymate import cache, graph as graph_module, models  # noqa: F401
from tourneymate.graph import GraphStore

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def new_redis():
    """A FakeRedis on its own server, so nothing leaks between tests."""

    return fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )


@pytest.fixture(autouse=True)
def fresh_stores(monkeypatch):
    """Point the app at an empty in-memory graph and a private Redis server."""

    store = GraphStore(MEMORY_URL)
    client = new_redis()
    monkeypatch.setattr(graph_module, "graph", store)
    monkeypatch.setattr(cache, "redis_client", client)
    monkeypatch.setenv("GRAPH_CREATE_SCHEMA", "true")
    yield store, client
    if store.connected:
        asyncio.run(store.dispose())


@pytest.fixture
def client(fresh_stores):
    from tourneymate.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def seeded(client, fresh_stores):
    """The demo data from ``seed.py`` loaded through the app's event loop."""

    from seed import seed_graph

    store, _ = fresh_stores
    client.portal.call(seed_graph, store)
    return store


@pytest.fixture
def login(client):
    def _login(username: str, password: str | None = None) -> dict:
        resp = client.post(
            "/api/auth/login",
            json={"username": username, "password": password or username},
        )
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login


@pytest.fixture
def run(client):
    """Run a coroutine function on the app's event loop."""

    def _run(fn, *args, **kwargs):
        return client.portal.call(partial(fn, *args, **kwargs))

    return _run
