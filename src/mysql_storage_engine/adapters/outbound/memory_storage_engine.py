"""In-memory storage engine.

A dict-backed implementation of the StorageEngine contract with the same
error semantics as the MySQL engine. Hosts use it as the engine that runs
before a database engine is configured, which makes it the usual source
of a first migration. Data is not persisted across restarts.

Usage:
    old = MemoryStorageEngine({"k1": 1, "k2": 2})
    await old.put("k3", 3)
    pairs = await old.get()
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any

from mysql_storage_engine.ports.inbound import (
    KeyFoundError,
    KeyNotFoundError,
    Pair,
    SourceEngine,
    StorageEngine,
    StorageFunction,
    StorageFunctionGroup,
    StorageFunctionType,
    StorageType,
)


class MemoryStorageEngine(StorageEngine):
    """In-memory implementation of the StorageEngine port."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        """Initialize storage, optionally seeded with entries."""
        self._entries: dict[str, Any] = dict(initial or {})
        super().__init__(
            "Memory",
            StorageType.FILE,
            StorageFunctionGroup(
                StorageFunction(StorageFunctionType.GET, self.get),
                StorageFunction(StorageFunctionType.PUT, self.put),
                StorageFunction(StorageFunctionType.DEL, self.delete),
                StorageFunction(StorageFunctionType.HAS, self.has),
            ),
        )

    async def init(self, old_engine: SourceEngine | None) -> str:
        """Copy every entry of ``old_engine`` that is not already present."""
        if old_engine is None:
            return "Memory engine ready"
        copied = 0
        for key, value in await old_engine.get():
            if key not in self._entries:
                self._entries[key] = value
                copied += 1
        return f"Memory engine ready ({copied} entries migrated)"

    @property
    def size(self) -> Awaitable[int]:
        return self._size()

    async def _size(self) -> int:
        return len(self._entries)

    async def get(self, resource_id: str | None = None) -> Any:
        if resource_id is None:
            return list(self._entries.items())
        if resource_id not in self._entries:
            raise KeyNotFoundError(resource_id)
        return self._entries[resource_id]

    async def put(self, resource_id: str, resource_data: Any) -> None:
        if resource_id in self._entries:
            raise KeyFoundError(resource_id)
        self._entries[resource_id] = resource_data

    async def delete(self, resource_id: str) -> None:
        if resource_id not in self._entries:
            raise KeyNotFoundError(resource_id)
        del self._entries[resource_id]

    async def has(self, resource_id: str) -> bool:
        return resource_id in self._entries

    def items(self) -> list[Pair]:
        """Snapshot of the stored pairs, for inspection."""
        return list(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)
