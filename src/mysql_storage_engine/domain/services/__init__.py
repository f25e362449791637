"""Domain services - table bootstrap and migration."""

from mysql_storage_engine.domain.services.migration_runner import (
    EntryWriter,
    MigrationReport,
    MigrationRunner,
)
from mysql_storage_engine.domain.services.table_bootstrapper import (
    TableBootstrapper,
    TableCatalog,
)

__all__ = [
    "EntryWriter",
    "MigrationReport",
    "MigrationRunner",
    "TableBootstrapper",
    "TableCatalog",
]
