"""Pytest configuration and fixtures for mysql_storage_engine tests."""

from __future__ import annotations

import asyncio
import json
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generator, Sequence

import pytest
from prometheus_client import CollectorRegistry
from pymysql.err import IntegrityError, OperationalError, ProgrammingError

from mysql_storage_engine.application import MySQLStorageEngine
from mysql_storage_engine.infrastructure.config import MySQLOptions, PoolConfig
from mysql_storage_engine.infrastructure.container import Container, reset_container
from mysql_storage_engine.infrastructure.metrics import MetricsRegistry


# -- Fake MySQL --------------------------------------------------------------
# Executes exactly the statements the resource store issues, against
# in-memory tables, and raises the same pymysql errors a server would.

_T = r"`(?P<table>[A-Za-z0-9_$]+)`"
_STATEMENTS: list[tuple[str, re.Pattern[str]]] = [
    ("show_tables", re.compile(r"^SHOW TABLES LIKE %s$")),
    ("create", re.compile(rf"^CREATE TABLE {_T} \(id VARCHAR\(255\) PRIMARY KEY, data JSON NOT NULL\)$")),
    ("drop", re.compile(rf"^DROP TABLE {_T}$")),
    ("get_one", re.compile(rf"^SELECT id, data FROM {_T} WHERE id = %s$")),
    ("get_all", re.compile(rf"^SELECT id, data FROM {_T}$")),
    ("has", re.compile(rf"^SELECT id FROM {_T} WHERE id = %s$")),
    ("insert", re.compile(rf"^INSERT INTO {_T} \(id, data\) VALUES \(%s, %s\)$")),
    ("delete", re.compile(rf"^DELETE FROM {_T} WHERE id = %s$")),
    ("count", re.compile(rf"^SELECT COUNT\(\*\) AS count FROM {_T}$")),
]


def _unescape_like(pattern: str) -> str:
    return re.sub(r"\\(.)", r"\1", pattern)


class FakeMySQLServer:
    """In-memory stand-in for a MySQL database shared by fake pools."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, str]] = {}
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: list[tuple[str, BaseException, int | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.stale_ids: set[str] = set()

    def fail_on(self, kind: str, error: BaseException, times: int | None = None) -> None:
        """Raise ``error`` for the next ``times`` statements of ``kind`` (forever if None)."""
        self._failures.append((kind, error, times))

    def hide_from_existence_checks(self, resource_id: str) -> None:
        """Make existence checks miss ``resource_id``, as if another writer raced us."""
        self.stale_ids.add(resource_id)

    def count(self, kind: str) -> int:
        """How many statements of ``kind`` were executed."""
        return sum(1 for query, _ in self.statements if _classify(query)[0] == kind)

    def _maybe_fail(self, kind: str) -> None:
        for i, (failing_kind, error, times) in enumerate(self._failures):
            if failing_kind != kind:
                continue
            if times is not None:
                if times <= 1:
                    self._failures.pop(i)
                else:
                    self._failures[i] = (failing_kind, error, times - 1)
            raise error

    def _table(self, name: str) -> dict[str, str]:
        if name not in self.tables:
            raise ProgrammingError(1146, f"Table 'dbname.{name}' doesn't exist")
        return self.tables[name]

    def run(self, query: str, args: Sequence[Any] | None) -> tuple[list[tuple[Any, ...]], int]:
        args = tuple(args or ())
        kind, table = _classify(query)
        self.statements.append((query, args))
        self._maybe_fail(kind)

        if kind == "show_tables":
            name = _unescape_like(args[0])
            return ([(name,)] if name in self.tables else []), 0
        if kind == "create":
            if table in self.tables:
                raise OperationalError(1050, f"Table '{table}' already exists")
            self.tables[table] = {}
            return [], 0
        if kind == "drop":
            if table not in self.tables:
                raise OperationalError(1051, f"Unknown table 'dbname.{table}'")
            del self.tables[table]
            return [], 0

        rows = self._table(table)
        if kind == "get_one":
            key = args[0]
            return ([(key, rows[key])] if key in rows else []), 0
        if kind == "get_all":
            return [(key, data) for key, data in rows.items()], 0
        if kind == "has":
            visible = args[0] in rows and args[0] not in self.stale_ids
            return ([(args[0],)] if visible else []), 0
        if kind == "insert":
            key, data = args
            if key in rows:
                raise IntegrityError(1062, f"Duplicate entry '{key}' for key 'PRIMARY'")
            json.loads(data)
            rows[key] = data
            return [], 1
        if kind == "delete":
            return [], 1 if rows.pop(args[0], None) is not None else 0
        if kind == "count":
            return [(len(rows),)], 0
        raise AssertionError(f"unhandled statement kind {kind}")


def _classify(query: str) -> tuple[str, str | None]:
    for kind, pattern in _STATEMENTS:
        match = pattern.match(query)
        if match:
            return kind, match.groupdict().get("table")
    raise ProgrammingError(1064, f"You have an error in your SQL syntax near '{query}'")


class FakeCursor:
    def __init__(self, server: FakeMySQLServer) -> None:
        self._server = server
        self._rows: list[tuple[Any, ...]] = []
        self.rowcount = -1

    async def execute(self, query: str, args: Sequence[Any] | None = None) -> int:
        # Yield so concurrent operations interleave like real round-trips.
        await asyncio.sleep(0)
        self._rows, self.rowcount = self._server.run(query, args)
        return self.rowcount

    async def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._rows)


class FakeConnection:
    def __init__(self, server: FakeMySQLServer) -> None:
        self._server = server

    @asynccontextmanager
    async def cursor(self) -> AsyncIterator[FakeCursor]:
        yield FakeCursor(self._server)


class FakePool:
    """aiomysql-shaped pool bounded to ``maxsize`` concurrent connections."""

    def __init__(self, server: FakeMySQLServer, maxsize: int = 10) -> None:
        self.server = server
        self.maxsize = maxsize
        self.closed = False
        self.wait_closed_called = False
        self._slots = asyncio.Semaphore(maxsize)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[FakeConnection]:
        if self.closed:
            raise OperationalError(2013, "Lost connection to MySQL server")
        async with self._slots:
            self.server.in_flight += 1
            self.server.max_in_flight = max(self.server.max_in_flight, self.server.in_flight)
            try:
                yield FakeConnection(self.server)
            finally:
                self.server.in_flight -= 1

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        self.wait_closed_called = True


class FakePoolFactory:
    """Pool factory recording the options each pool was created with."""

    def __init__(self, server: FakeMySQLServer) -> None:
        self.server = server
        self.calls: list[tuple[MySQLOptions, PoolConfig]] = []
        self.pools: list[FakePool] = []

    async def __call__(self, options: MySQLOptions, pool_config: PoolConfig) -> FakePool:
        self.calls.append((options, pool_config))
        pool = FakePool(self.server, maxsize=pool_config.max_connections)
        self.pools.append(pool)
        return pool


class SpySourceEngine:
    """Previous engine that records how often its dataset was read."""

    def __init__(self, pairs: Sequence[tuple[str, Any]] = ()) -> None:
        self.pairs = list(pairs)
        self.get_calls = 0

    async def get(self) -> list[tuple[str, Any]]:
        self.get_calls += 1
        return list(self.pairs)


# -- Fixtures ----------------------------------------------------------------


@pytest.fixture
def fake_server() -> FakeMySQLServer:
    """Provide an empty fake MySQL server."""
    return FakeMySQLServer()


@pytest.fixture
def fake_pool(fake_server: FakeMySQLServer) -> FakePool:
    """Provide a fake pool on the fake server."""
    return FakePool(fake_server)


@pytest.fixture
def pool_factory(fake_server: FakeMySQLServer) -> FakePoolFactory:
    """Provide a pool factory producing fake pools."""
    return FakePoolFactory(fake_server)


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def engine(pool_factory: FakePoolFactory, metrics_registry: MetricsRegistry) -> MySQLStorageEngine:
    """Provide an uninitialized engine wired to the fake server."""
    return MySQLStorageEngine(
        {"table": "ass"},
        pool_factory=pool_factory,
        metrics=metrics_registry,
    )


@pytest.fixture
async def ready_engine(engine: MySQLStorageEngine) -> MySQLStorageEngine:
    """Provide an engine initialized against an empty database."""
    await engine.init(SpySourceEngine())
    return engine


@pytest.fixture
def make_source() -> type[SpySourceEngine]:
    """Provide the spy source engine class for building migration sources."""
    return SpySourceEngine


@pytest.fixture
def container() -> Generator[Container, None, None]:
    """Provide a fresh DI container for each test."""
    reset_container()
    c = Container()
    yield c
    c.clear()


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests against a live MySQL server")
