"""Outbound ports - interfaces for external dependencies.

The engine depends on a single external system: a pooled MySQL driver.
"""

from mysql_storage_engine.ports.outbound.connection_pool import (
    Connection,
    ConnectionPool,
    Cursor,
)

__all__ = [
    "Connection",
    "ConnectionPool",
    "Cursor",
]
