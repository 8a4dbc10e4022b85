"""Graph store adapter.

Nodes (users, players, teams, tournaments) and the edges between them live in
SQL tables. Callers compose statements with SQLAlchemy's expression language,
so every query is a statement plus bound parameters; nothing is assembled from
caller-supplied strings.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

from sqlalchemy import Row, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy.sql.base import Executable

from .config import GRAPH_TIMEOUT_SECONDS
from .db_errors import is_connection_error, is_unique_violation
from .exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()

T = TypeVar("T")


def resolve_database_url(database_url: str | None = None) -> str:
    """Return the async driver URL for ``database_url`` or ``DATABASE_URL``."""

    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL environment variable is required")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _engine_kwargs(database_url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": False}
    if database_url.startswith("sqlite+aiosqlite://"):
        # In-memory SQLite must reuse the same connection to persist schema/data.
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["poolclass"] = NullPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


class GraphStore:
    """Lazily connected client for the graph tables.

    The engine is created and a handshake issued on first use. Concurrent
    first calls wait on a single lock; once connected no further in-process
    locking happens. A failed handshake leaves the store disconnected so the
    next call attempts it again. Each statement runs in its own transaction.
    """

    def __init__(
        self,
        database_url: str | None = None,
        *,
        timeout: float = GRAPH_TIMEOUT_SECONDS,
        engine_factory: Callable[..., AsyncEngine] = create_async_engine,
    ) -> None:
        self._database_url = database_url
        self._timeout = timeout
        self._engine_factory = engine_factory
        self._engine: AsyncEngine | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> AsyncEngine:
        if self._engine is not None:
            return self._engine

        async with self._lock:
            if self._engine is not None:
                return self._engine

            url = resolve_database_url(self._database_url)
            engine = self._engine_factory(url, **_engine_kwargs(url))
            try:
                await asyncio.wait_for(self._handshake(engine), self._timeout)
            except (asyncio.TimeoutError, OSError, SQLAlchemyError) as exc:
                await engine.dispose()
                logger.error("Graph store handshake failed: %s", exc)
                raise StoreUnavailable("graph store unavailable") from exc

            self._engine = engine
            logger.info("Graph store connected (%s)", engine.url.get_backend_name())
            return engine

    @staticmethod
    async def _handshake(engine: AsyncEngine) -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def _run(self, op: Callable[[AsyncEngine], Awaitable[T]]) -> T:
        engine = await self.connect()
        try:
            return await asyncio.wait_for(op(engine), self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Graph statement exceeded %.1fs budget", self._timeout)
            raise StoreUnavailable("graph store timed out") from exc
        except (OSError, SQLAlchemyError) as exc:
            if is_connection_error(exc):
                logger.error("Graph store connection error: %s", exc)
                raise StoreUnavailable("graph store unavailable") from exc
            raise

    async def query(self, stmt: Executable) -> Sequence[Row]:
        """Run a read statement and return every row of its projection."""

        async def op(engine: AsyncEngine) -> Sequence[Row]:
            async with engine.connect() as conn:
                result = await conn.execute(stmt)
                return result.all()

        return await self._run(op)

    async def query_one(self, stmt: Executable) -> Row | None:
        rows = await self.query(stmt)
        return rows[0] if rows else None

    async def mutate(self, stmt: Executable) -> int:
        """Run one write statement in its own transaction; return the rowcount."""

        async def op(engine: AsyncEngine) -> int:
            async with engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount

        return await self._run(op)

    async def merge(
        self,
        model: type,
        key: Mapping[str, Any],
        *,
        on_create: Mapping[str, Any] | None = None,
        on_match: Mapping[str, Any] | None = None,
    ) -> bool:
        """Create the row identified by ``key`` unless it already exists.

        ``on_create`` values are only written when the row is created;
        ``on_match`` values are written to an existing row. Returns ``True``
        when a row was created. A concurrent insert of the same key counts as
        an existing row.
        """

        table = model.__table__
        where = [table.c[name] == value for name, value in key.items()]

        existing = await self.query_one(select(*table.primary_key.columns).where(*where))
        created = False
        if existing is None:
            try:
                await self.mutate(
                    table.insert().values(**{**dict(on_create or {}), **dict(key)})
                )
                created = True
            except IntegrityError as exc:
                if not is_unique_violation(exc):
                    raise
                logger.debug("Concurrent merge on %s %s", table.name, dict(key))

        if not created and on_match:
            await self.mutate(update(table).where(*where).values(**dict(on_match)))
        return created

    async def create_schema(self) -> None:
        engine = await self.connect()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        engine = await self.connect()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
                self._engine = None


graph: GraphStore | None = None


def get_graph() -> GraphStore:
    """Return the process-wide graph store, created on first use.

    Importing this module has no side effects so tests can set
    ``DATABASE_URL`` at runtime or replace ``graph`` outright.
    """

    global graph
    if graph is None:
        graph = GraphStore()
    return graph
