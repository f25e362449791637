"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: the storage contract a host drives (StorageEngine)
- Outbound ports: dependencies on external systems (ConnectionPool)

Adapters implement these ports with concrete functionality.
"""

from mysql_storage_engine.ports.inbound import (
    EngineNotInitializedError,
    InitializationError,
    KeyFoundError,
    KeyNotFoundError,
    MigrationError,
    Pair,
    SourceEngine,
    StorageEngine,
    StorageEngineError,
    StorageFunction,
    StorageFunctionGroup,
    StorageFunctionType,
    StorageType,
)
from mysql_storage_engine.ports.outbound import Connection, ConnectionPool, Cursor

__all__ = [
    # Inbound ports
    "EngineNotInitializedError",
    "InitializationError",
    "KeyFoundError",
    "KeyNotFoundError",
    "MigrationError",
    "Pair",
    "SourceEngine",
    "StorageEngine",
    "StorageEngineError",
    "StorageFunction",
    "StorageFunctionGroup",
    "StorageFunctionType",
    "StorageType",
    # Outbound ports
    "Connection",
    "ConnectionPool",
    "Cursor",
]
