"""aiomysql connection pool adapter.

Creates the single shared pool every operation runs against. The pool
opens connections on demand (``minsize=0``), so bad credentials or an
unreachable host surface on the first query rather than here.

When all connections are busy, ``acquire`` waits for one to be released.
There is no cap on the number of waiters and no acquisition timeout;
callers that need bounded latency wrap calls in ``asyncio.wait_for``.
"""

from __future__ import annotations

import aiomysql

from mysql_storage_engine.infrastructure.config import MySQLOptions, PoolConfig
from mysql_storage_engine.infrastructure.logging import get_logger
from mysql_storage_engine.ports.outbound import ConnectionPool

logger = get_logger(__name__)


async def create_pool(
    options: MySQLOptions,
    pool_config: PoolConfig | None = None,
) -> ConnectionPool:
    """
    Create the shared aiomysql pool.

    Args:
        options: Host, port, credentials and database
        pool_config: Pool sizing and timeouts (defaults: 10 connections,
            5 s connect timeout, 30 s idle recycle)

    Returns:
        The pool, typed as the ConnectionPool port
    """
    pool_config = pool_config or PoolConfig()

    pool = await aiomysql.create_pool(
        host=options.host,
        port=options.port,
        user=options.username,
        password=options.password,
        db=options.database,
        minsize=0,
        maxsize=pool_config.max_connections,
        connect_timeout=pool_config.connect_timeout_seconds,
        pool_recycle=pool_config.idle_timeout_seconds,
        autocommit=True,
        charset="utf8mb4",
    )

    logger.info(
        "pool_created",
        host=options.host,
        port=options.port,
        database=options.database,
        max_connections=pool_config.max_connections,
    )
    return pool
