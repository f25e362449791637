"""Storage Engine port: the contract a host uses to drive any engine.

A host application is storage-agnostic. It loads one engine, hands it the
previously active engine for migration, and then dispatches the four
primitive operations through the engine's function table:

- GET: one value by id, or every (id, value) pair when no id is given
- PUT: insert-only write; an existing id is rejected
- DEL: remove by id; an absent id is rejected
- HAS: existence check; never rejects for an absent id

Domain errors (``KeyNotFoundError``, ``KeyFoundError``) are the only
failures with a defined recovery meaning. Infrastructure failures from the
underlying store propagate unchanged so callers can tell them apart.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from mysql_storage_engine.domain.services.migration_runner import MigrationReport


Pair = tuple[str, Any]


class StorageType(Enum):
    """Where an engine keeps its data."""

    FILE = "file"
    DB = "db"


class StorageFunctionType(Enum):
    """The primitive operations a host may dispatch."""

    GET = "get"
    PUT = "put"
    DEL = "del"
    HAS = "has"


class StorageEngineError(Exception):
    """Base class for all storage engine errors."""


class KeyNotFoundError(StorageEngineError):
    """The requested id has no entry."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found: {key}")


class KeyFoundError(StorageEngineError):
    """An entry already exists for the id; writes never overwrite."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key already exists: {key}")


class InitializationError(StorageEngineError):
    """Pool creation, table bootstrap or migration failed during init."""


class MigrationError(StorageEngineError):
    """One or more entries could not be migrated.

    Entries written before the failure stay written; re-running the
    migration skips them.
    """

    def __init__(self, report: MigrationReport) -> None:
        self.report = report
        failed = ", ".join(sorted(report.failed))
        super().__init__(f"Migration failed for {len(report.failed)} entries: {failed}")


class EngineNotInitializedError(StorageEngineError, RuntimeError):
    """An operation was attempted before init completed."""


@dataclass(frozen=True)
class StorageFunction:
    """Binds one primitive operation to the callable that implements it."""

    type: StorageFunctionType
    func: Callable[..., Awaitable[Any]]

    async def __call__(self, *args: Any) -> Any:
        return await self.func(*args)


class StorageFunctionGroup:
    """The function table a host dispatches through.

    All four primitives must be present exactly once.
    """

    def __init__(self, *functions: StorageFunction) -> None:
        table: dict[StorageFunctionType, StorageFunction] = {}
        for function in functions:
            if function.type in table:
                raise ValueError(f"Duplicate storage function: {function.type.name}")
            table[function.type] = function

        missing = [t.name for t in StorageFunctionType if t not in table]
        if missing:
            raise ValueError(f"Missing storage functions: {', '.join(missing)}")
        self._table = table

    def get(self, function_type: StorageFunctionType) -> StorageFunction:
        """Look up the function bound to ``function_type``."""
        return self._table[function_type]

    def __getitem__(self, function_type: StorageFunctionType) -> StorageFunction:
        return self._table[function_type]

    def __iter__(self) -> Iterator[StorageFunction]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)


class SourceEngine(Protocol):
    """What migration needs from the previously active engine."""

    async def get(self) -> Sequence[Pair]:
        """Return the engine's entire dataset as (id, value) pairs."""
        ...


class StorageEngine(ABC):
    """Base class every engine loaded by a host extends.

    Subclasses pass their name, storage type and function table to
    ``__init__`` and implement ``init`` and ``size``.
    """

    def __init__(
        self,
        name: str,
        storage_type: StorageType,
        functions: StorageFunctionGroup,
    ) -> None:
        self.name = name
        self.storage_type = storage_type
        self.functions = functions

    @abstractmethod
    async def init(self, old_engine: SourceEngine | None) -> str:
        """Prepare the engine, migrating from ``old_engine`` where needed.

        Returns:
            A human-readable status line for the host to log.
        """
        ...

    @property
    @abstractmethod
    def size(self) -> Awaitable[int]:
        """Number of stored entries, computed on each access."""
        ...

    async def dispatch(self, function_type: StorageFunctionType, *args: Any) -> Any:
        """Run one primitive through the function table."""
        return await self.functions[function_type](*args)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name} ({self.storage_type.value})>"
