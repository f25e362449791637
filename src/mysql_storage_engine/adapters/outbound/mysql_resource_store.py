"""MySQL resource store - the CRUD primitives over a connection pool.

Every operation is one round-trip on a pooled connection, except ``put``,
which checks for the id first and then inserts. The two steps are not
atomic; the primary key constraint catches the race and the resulting
duplicate-key error is reported as ``KeyFoundError``, the same as the
check itself.

Schema:
    CREATE TABLE <table> (
        id VARCHAR(255) PRIMARY KEY,
        data JSON NOT NULL
    )

The table name is interpolated (identifiers cannot be bound), so it must
be a validated ``TableName``. All values are bound as ``%s`` parameters.
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import nullcontext
from typing import Any, ContextManager

from pymysql.constants import ER
from pymysql.err import MySQLError

from mysql_storage_engine.domain.entities import Entry
from mysql_storage_engine.domain.value_objects import TableName
from mysql_storage_engine.infrastructure.logging import get_logger
from mysql_storage_engine.infrastructure.metrics import MetricsRegistry
from mysql_storage_engine.ports.inbound import KeyFoundError, KeyNotFoundError
from mysql_storage_engine.ports.outbound import ConnectionPool

logger = get_logger(__name__)


def mysql_errno(exc: BaseException) -> int | None:
    """Return the MySQL server error code carried by a driver exception."""
    if isinstance(exc, MySQLError) and exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def _like_literal(value: str) -> str:
    """Escape LIKE wildcards so the pattern matches ``value`` exactly."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MySQLResourceStore:
    """CRUD over one two-column MySQL table.

    Domain failures raise ``KeyNotFoundError`` / ``KeyFoundError``. Driver
    failures (``pymysql.err.*``) propagate unchanged.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        table: TableName,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            pool: Shared connection pool; every operation runs against it
            table: The backing table
            metrics: Optional metrics registry for per-operation counters
        """
        self._pool = pool
        self._table = table
        self._metrics = metrics

        t = table.quoted
        self._sql_get_one = f"SELECT id, data FROM {t} WHERE id = %s"
        self._sql_get_all = f"SELECT id, data FROM {t}"
        self._sql_has = f"SELECT id FROM {t} WHERE id = %s"
        self._sql_insert = f"INSERT INTO {t} (id, data) VALUES (%s, %s)"
        self._sql_delete = f"DELETE FROM {t} WHERE id = %s"
        self._sql_count = f"SELECT COUNT(*) AS count FROM {t}"
        self._sql_create = (
            f"CREATE TABLE {t} ("
            "id VARCHAR(255) PRIMARY KEY, "
            "data JSON NOT NULL"
            ")"
        )
        self._sql_drop = f"DROP TABLE {t}"

    @property
    def table(self) -> TableName:
        """The backing table."""
        return self._table

    # -- CRUD ----------------------------------------------------------

    async def get(self, resource_id: str | None = None) -> Any:
        """Fetch one value, or every (id, value) pair when no id is given.

        Raises:
            KeyNotFoundError: If ``resource_id`` is given and has no row.
        """
        with self._observe("get"):
            if resource_id is None:
                rows = await self._fetch_all(self._sql_get_all)
                return [Entry.from_row(row).as_pair() for row in rows]

            rows = await self._fetch_all(self._sql_get_one, (resource_id,))
            if not rows:
                raise KeyNotFoundError(resource_id)
            return Entry.from_row(rows[0]).resource_data

    async def put(self, resource_id: str, resource_data: Any) -> None:
        """Insert a new entry.

        Raises:
            KeyFoundError: If the id already has a row.
            ValueError: If the id is empty.
            TypeError: If the value is not JSON-serializable.
        """
        row = Entry(resource_id, resource_data).to_row()
        with self._observe("put"):
            if await self._exists(resource_id):
                raise KeyFoundError(resource_id)

            try:
                await self._execute(self._sql_insert, row)
            except MySQLError as e:
                if mysql_errno(e) == ER.DUP_ENTRY:
                    logger.info("put_lost_insert_race", resource_id=resource_id)
                    raise KeyFoundError(resource_id) from e
                raise

    async def delete(self, resource_id: str) -> None:
        """Remove an entry.

        Raises:
            KeyNotFoundError: If no row was deleted.
        """
        with self._observe("del"):
            affected = await self._execute(self._sql_delete, (resource_id,))
            if affected == 0:
                raise KeyNotFoundError(resource_id)

    async def has(self, resource_id: str) -> bool:
        """Whether an entry exists for ``resource_id``."""
        with self._observe("has"):
            return await self._exists(resource_id)

    async def count(self) -> int:
        """Number of rows in the table. Driver errors propagate."""
        with self._observe("size"):
            rows = await self._fetch_all(self._sql_count)
            return int(rows[0][0]) if rows else 0

    # -- Schema --------------------------------------------------------

    async def table_exists(self) -> bool:
        """Catalog lookup for the backing table."""
        rows = await self._fetch_all("SHOW TABLES LIKE %s", (_like_literal(self._table.value),))
        return len(rows) > 0

    async def create_table(self) -> bool:
        """Create the backing table.

        Returns:
            True if this call created it, False if another process created
            it between the catalog lookup and this statement.
        """
        try:
            await self._execute(self._sql_create)
        except MySQLError as e:
            if mysql_errno(e) == ER.TABLE_EXISTS_ERROR:
                logger.info("create_table_lost_race", table=self._table.value)
                return False
            raise
        return True

    async def drop_table(self) -> None:
        """Drop the backing table unconditionally."""
        await self._execute(self._sql_drop)

    # -- Internals -----------------------------------------------------

    async def _exists(self, resource_id: str) -> bool:
        rows = await self._fetch_all(self._sql_has, (resource_id,))
        return len(rows) > 0

    async def _fetch_all(
        self, query: str, args: Sequence[Any] | None = None
    ) -> Sequence[tuple[Any, ...]]:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, args)
                return await cur.fetchall()

    async def _execute(self, query: str, args: Sequence[Any] | None = None) -> int:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, args)
                return cur.rowcount

    def _observe(self, operation: str) -> ContextManager[None]:
        if self._metrics is None:
            return nullcontext()
        return self._metrics.observe(operation)

    def __repr__(self) -> str:
        return f"<MySQLResourceStore table={self._table}>"
