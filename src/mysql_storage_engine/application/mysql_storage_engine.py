"""MySQL Storage Engine - the adapter object a host loads.

This module provides the MySQLStorageEngine class that composes the pool,
the resource store, the bootstrapper and the migration runner behind the
host's StorageEngine contract.

Usage:
    from mysql_storage_engine.application import MySQLStorageEngine

    engine = MySQLStorageEngine({"host": "db", "port": 3306, "table": "ass"})
    status = await engine.init(old_engine)     # "Table ass created"

    await engine.put("a", {"x": 1})
    await engine.get("a")                      # {"x": 1}
    await engine.size                          # 1

Lifecycle:
    UNINITIALIZED -> POOL_READY -> TABLE_EXISTS | TABLE_CREATED_MIGRATING -> READY

    Storage operations are served only in READY; before that, and after a
    failed ``init``, they raise ``EngineNotInitializedError``.

    ``delete_table`` leaves the state at READY. Operations against the
    dropped table then fail with the driver's error, not a domain error.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from enum import Enum
from typing import Any

from mysql_storage_engine.adapters.outbound.aiomysql_pool import create_pool
from mysql_storage_engine.adapters.outbound.mysql_resource_store import MySQLResourceStore
from mysql_storage_engine.domain.services import (
    MigrationReport,
    MigrationRunner,
    TableBootstrapper,
)
from mysql_storage_engine.infrastructure.config import MySQLOptions, PoolConfig
from mysql_storage_engine.infrastructure.logging import bind_engine_context, get_logger
from mysql_storage_engine.infrastructure.metrics import MetricsRegistry
from mysql_storage_engine.infrastructure.tracing import db_span_attributes, trace_span
from mysql_storage_engine.ports.inbound import (
    EngineNotInitializedError,
    InitializationError,
    Pair,
    SourceEngine,
    StorageEngine,
    StorageFunction,
    StorageFunctionGroup,
    StorageFunctionType,
    StorageType,
)
from mysql_storage_engine.ports.outbound import ConnectionPool

logger = get_logger(__name__)

PoolFactory = Callable[[MySQLOptions, PoolConfig], Awaitable[ConnectionPool]]


class EngineState(Enum):
    """Lifecycle of one engine instance."""

    UNINITIALIZED = "uninitialized"
    POOL_READY = "pool-ready"
    TABLE_EXISTS = "table-exists"
    TABLE_CREATED_MIGRATING = "table-created-and-migrating"
    READY = "ready"


class MySQLStorageEngine(StorageEngine):
    """Storage engine persisting entries in a MySQL table.

    The pool is owned by the instance and handed to the resource store;
    there is no module-level pool. Pass ``pool_factory`` to substitute
    the pool (tests use an in-memory fake).
    """

    def __init__(
        self,
        options: MySQLOptions | Mapping[str, Any] | None = None,
        *,
        pool_config: PoolConfig | None = None,
        pool_factory: PoolFactory = create_pool,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the engine. No I/O happens until ``init``.

        Args:
            options: Connection options, or a partial mapping merged over
                the defaults
            pool_config: Pool sizing and timeouts
            pool_factory: Coroutine creating the pool from the options
            metrics: Optional metrics registry
        """
        super().__init__(
            "MySQL",
            StorageType.DB,
            StorageFunctionGroup(
                StorageFunction(StorageFunctionType.GET, self.get),
                StorageFunction(StorageFunctionType.PUT, self.put),
                StorageFunction(StorageFunctionType.DEL, self.delete),
                StorageFunction(StorageFunctionType.HAS, self.has),
            ),
        )

        if isinstance(options, MySQLOptions):
            self._options = options
        else:
            self._options = MySQLOptions.from_overrides(options)

        self._pool_config = pool_config or PoolConfig()
        self._pool_factory = pool_factory
        self._metrics = metrics

        self._pool: ConnectionPool | None = None
        self._store: MySQLResourceStore | None = None
        self._runner: MigrationRunner | None = None
        self._state = EngineState.UNINITIALIZED
        self._pool_lock = asyncio.Lock()

        # Set by load_engine when init runs in the background.
        self.init_task: asyncio.Task[str] | None = None

    @property
    def options(self) -> MySQLOptions:
        """The merged, frozen connection options."""
        return self._options

    @property
    def state(self) -> EngineState:
        """Current lifecycle state."""
        return self._state

    @property
    def pool(self) -> ConnectionPool | None:
        """The shared pool, once ``init`` has created it."""
        return self._pool

    # -- Lifecycle -----------------------------------------------------

    async def init(self, old_engine: SourceEngine | None) -> str:
        """Create the pool, bootstrap the table and migrate if it was created.

        Args:
            old_engine: The previously active engine; its dataset is
                migrated only when this call creates the table

        Returns:
            "Table <name> created" or "Table <name> exists"

        Raises:
            InitializationError: On any failure; ``__cause__`` holds the
                original error. The engine keeps whatever state it reached.
        """
        table = self._options.table_name
        bind_engine_context(self.name, table.value)

        with trace_span("storage.init", db_span_attributes(self._options)):
            try:
                async with self._pool_lock:
                    if self._pool is None:
                        self._pool = await self._pool_factory(self._options, self._pool_config)
                        self._store = MySQLResourceStore(self._pool, table, self._metrics)
                        self._runner = MigrationRunner(self._store, self._metrics)
                self._state = EngineState.POOL_READY

                bootstrapper = TableBootstrapper(self._store, self._runner)
                status = await bootstrapper.ensure_table(
                    old_engine,
                    on_created=self._mark_migrating,
                    on_exists=self._mark_exists,
                )
            except Exception as e:
                logger.error("init_failed", state=self._state.value, error=str(e))
                raise InitializationError(f"Failed to initialize table {table}: {e}") from e

        self._state = EngineState.READY
        return f"Table {table} {status.value}"

    def _mark_migrating(self) -> None:
        self._state = EngineState.TABLE_CREATED_MIGRATING

    def _mark_exists(self) -> None:
        self._state = EngineState.TABLE_EXISTS

    @property
    def size(self) -> Awaitable[int]:
        """Number of entries; 0 if the count query fails."""
        return self._get_size()

    async def _get_size(self) -> int:
        try:
            return await self._require_store().count()
        except Exception as e:
            # Size is advisory; report zero rather than failing the caller.
            logger.warning("size_query_failed", error=str(e), error_type=type(e).__name__)
            if self._metrics is not None:
                self._metrics.size_query_failures_total.inc()
            return 0

    async def migrate(self, entries: Iterable[Pair]) -> MigrationReport:
        """Copy every absent entry into the table.

        Raises:
            MigrationError: If any entry failed (others stay written)
            EngineNotInitializedError: If init has not completed
        """
        self._require_ready()
        return await self._runner.migrate(entries)

    async def delete_table(self) -> None:
        """Drop the table. No existence check and no undo."""
        await self._require_store().drop_table()
        logger.warning("table_dropped", table=self._options.table)

    async def close(self) -> None:
        """Close the pool, if one was created."""
        if self._pool is None:
            return
        self._pool.close()
        await self._pool.wait_closed()
        logger.info("pool_closed")

    # -- Storage functions ---------------------------------------------

    async def get(self, resource_id: str | None = None) -> Any:
        """One value by id, or every (id, value) pair."""
        return await self._require_store().get(resource_id)

    async def put(self, resource_id: str, resource_data: Any) -> None:
        """Insert-only write; raises KeyFoundError if the id exists."""
        await self._require_store().put(resource_id, resource_data)

    async def delete(self, resource_id: str) -> None:
        """Remove by id; raises KeyNotFoundError if absent."""
        await self._require_store().delete(resource_id)

    async def has(self, resource_id: str) -> bool:
        """Whether the id has an entry."""
        return await self._require_store().has(resource_id)

    def _require_ready(self) -> None:
        if self._state is not EngineState.READY:
            raise EngineNotInitializedError(
                f"{self.name} engine used before init completed (state={self._state.value})"
            )

    def _require_store(self) -> MySQLResourceStore:
        self._require_ready()
        return self._store
