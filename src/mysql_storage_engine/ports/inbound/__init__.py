"""Inbound ports - the contract a host uses to drive a storage engine."""

from mysql_storage_engine.ports.inbound.storage_engine import (
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

__all__ = [
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
]
