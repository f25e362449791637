"""Adapters layer - concrete implementations of port interfaces.

Outbound adapters implement external dependencies: the aiomysql pool and
the SQL that runs against it.
"""

from mysql_storage_engine.adapters.outbound import (
    MemoryStorageEngine,
    MySQLResourceStore,
    create_pool,
)

__all__ = [
    "MemoryStorageEngine",
    "MySQLResourceStore",
    "create_pool",
]
