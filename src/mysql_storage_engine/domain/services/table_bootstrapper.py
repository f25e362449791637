"""Schema bootstrapper: make sure the backing table exists.

On first initialization against a database the table is absent: it is
created and the previous engine's whole dataset is migrated into it. On
every later initialization the table is found and nothing else happens.

The lookup and the create are two statements with no lock between them.
If another process creates the table in that window, CREATE fails with
"table exists"; the catalog reports that as ``create_table() -> False``
and bootstrap treats the table as existing, leaving migration to the
process that created it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from mysql_storage_engine.domain.services.migration_runner import MigrationRunner
from mysql_storage_engine.domain.value_objects import TableName, TableStatus
from mysql_storage_engine.infrastructure.logging import get_logger
from mysql_storage_engine.infrastructure.tracing import trace_span
from mysql_storage_engine.ports.inbound import SourceEngine

logger = get_logger(__name__)


class TableCatalog(Protocol):
    """Schema operations bootstrap needs."""

    @property
    def table(self) -> TableName:
        ...

    async def table_exists(self) -> bool:
        ...

    async def create_table(self) -> bool:
        ...


class TableBootstrapper:
    """Creates the table once and triggers the one-time migration."""

    def __init__(self, catalog: TableCatalog, runner: MigrationRunner) -> None:
        self._catalog = catalog
        self._runner = runner

    async def ensure_table(
        self,
        old_engine: SourceEngine | None,
        on_created: Callable[[], None] | None = None,
        on_exists: Callable[[], None] | None = None,
    ) -> TableStatus:
        """Create the table if absent and migrate into it.

        Args:
            old_engine: Previous engine; None means there is nothing to migrate
            on_created: Called after CREATE succeeds, before migration starts
            on_exists: Called when the table is found to exist already

        Returns:
            CREATED if this call created the table, EXISTS otherwise

        Raises:
            MigrationError: If migration failed for any entry
            pymysql.err.MySQLError: On lookup or create failure
        """
        table = self._catalog.table.value
        with trace_span("storage.ensure_table", {"table": table}):
            if await self._catalog.table_exists() or not await self._catalog.create_table():
                logger.info("table_exists", table=table)
                if on_exists is not None:
                    on_exists()
                return TableStatus.EXISTS

            logger.info("table_created", table=table)
            if on_created is not None:
                on_created()

            if old_engine is not None:
                await self._runner.migrate(await old_engine.get())
            return TableStatus.CREATED
