"""Connection Pool port for the MySQL driver.

This outbound port describes the slice of the aiomysql pool API the
engine relies on. Any object with this shape can stand in for a real
pool, which is how tests run the engine without a server.

Usage:
    async with pool.acquire() as conn:
        async with conn.cursor() as cur:
            await cur.execute("SELECT id FROM `ass` WHERE id = %s", ("a",))
            rows = await cur.fetchall()
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, AsyncContextManager, Protocol


class Cursor(Protocol):
    """A cursor bound to one pooled connection."""

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement."""
        ...

    async def execute(self, query: str, args: Sequence[Any] | None = None) -> int:
        """Run one statement with ``%s`` placeholders bound to ``args``."""
        ...

    async def fetchall(self) -> Sequence[tuple[Any, ...]]:
        """Return every row produced by the last statement."""
        ...


class Connection(Protocol):
    """A connection checked out of the pool."""

    def cursor(self) -> AsyncContextManager[Cursor]:
        """Open a cursor; closed when the context exits."""
        ...


class ConnectionPool(Protocol):
    """A bounded set of reusable connections.

    Thread Safety:
        Not thread-safe. All use must happen on the event loop that
        created the pool. ``acquire`` waits (without timeout) for a free
        connection when the pool is exhausted.
    """

    def acquire(self) -> AsyncContextManager[Connection]:
        """Check out a connection; returned to the pool when the context exits."""
        ...

    def close(self) -> None:
        """Stop handing out connections and close idle ones."""
        ...

    async def wait_closed(self) -> None:
        """Wait until every connection has been closed."""
        ...
