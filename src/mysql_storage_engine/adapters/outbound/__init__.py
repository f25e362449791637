"""Outbound adapters - implementations of outbound ports.

These adapters talk to MySQL through aiomysql, plus an in-memory engine
used as a migration source and in tests.
"""

from mysql_storage_engine.adapters.outbound.aiomysql_pool import create_pool
from mysql_storage_engine.adapters.outbound.memory_storage_engine import MemoryStorageEngine
from mysql_storage_engine.adapters.outbound.mysql_resource_store import (
    MySQLResourceStore,
    mysql_errno,
)

__all__ = [
    "MemoryStorageEngine",
    "MySQLResourceStore",
    "create_pool",
    "mysql_errno",
]
