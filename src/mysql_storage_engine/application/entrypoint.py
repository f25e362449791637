"""Host loading hook.

Hosts load an engine by calling ``load_engine`` with the engine that was
active before. The engine is returned immediately; its ``init`` runs as a
background task on the host's event loop and logs its outcome, so a slow
or failing database never blocks the host's startup.

Connection options come from ``auth.mysql.json`` in the working directory
(falling back to ``MYSQL_ENGINE_MYSQL__*`` environment settings when the
file is absent):

    {
        "host": "localhost",
        "port": 3306,
        "database": "ass",
        "username": "ass",
        "password": "secret",
        "table": "ass"
    }
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from mysql_storage_engine.application.mysql_storage_engine import MySQLStorageEngine, PoolFactory
from mysql_storage_engine.infrastructure.config import (
    AUTH_FILE_NAME,
    Config,
    MySQLOptions,
    get_config,
    load_auth_file,
)
from mysql_storage_engine.infrastructure.container import Container, get_container
from mysql_storage_engine.infrastructure.logging import get_logger, setup_logging
from mysql_storage_engine.infrastructure.metrics import MetricsRegistry, get_metrics
from mysql_storage_engine.infrastructure.tracing import setup_tracing
from mysql_storage_engine.ports.inbound import SourceEngine

logger = get_logger(__name__)


def build_container(
    options: MySQLOptions,
    config: Config | None = None,
    metrics: MetricsRegistry | None = None,
    pool_factory: PoolFactory | None = None,
    container: Container | None = None,
) -> Container:
    """
    Register everything needed to build the engine.

    Args:
        options: Connection options (usually from the auth file)
        config: Settings; defaults to the environment-derived config
        metrics: Metrics registry; defaults to the global one
        pool_factory: Pool factory override (tests pass a fake)
        container: Container to fill; defaults to the global one

    Returns:
        The filled container
    """
    container = container or get_container()
    container.register_singleton(MySQLOptions, options)
    container.register_factory(Config, lambda c: config or get_config())
    container.register_factory(MetricsRegistry, lambda c: metrics or get_metrics())

    def _engine(c: Container) -> MySQLStorageEngine:
        kwargs = {}
        if pool_factory is not None:
            kwargs["pool_factory"] = pool_factory
        return MySQLStorageEngine(
            c.resolve(MySQLOptions),
            pool_config=c.resolve(Config).pool,
            metrics=c.resolve(MetricsRegistry),
            **kwargs,
        )

    container.register_factory(MySQLStorageEngine, _engine)
    return container


def load_engine(
    old_engine: SourceEngine | None,
    *,
    auth_path: str | Path | None = None,
    container: Container | None = None,
) -> MySQLStorageEngine:
    """
    Build the engine and start initializing it in the background.

    Must be called from a running event loop.

    Args:
        old_engine: The previously active engine (migration source)
        auth_path: Auth file to read; defaults to ./auth.mysql.json
        container: Pre-filled container; when given, the auth file is not read

    Returns:
        The engine; ``engine.state`` reaches READY once init completes
    """
    if container is None:
        container = build_container(_resolve_options(auth_path))

    engine = container.resolve(MySQLStorageEngine)
    task = asyncio.get_running_loop().create_task(engine.init(old_engine))
    task.add_done_callback(_log_init_outcome)
    engine.init_task = task
    return engine


def configure_observability(config: Config | None = None) -> None:
    """
    Configure logging and tracing from settings.

    The engine never does this on its own; hosts that have no logging or
    tracing setup of their own call it once at startup.
    """
    observability = (config or get_config()).observability
    setup_logging(observability)
    setup_tracing(
        service_name=observability.otel_service_name,
        otlp_endpoint=observability.otel_endpoint,
    )


def _resolve_options(auth_path: str | Path | None) -> MySQLOptions:
    """Auth file options when the file exists, else the environment config."""
    path = Path(auth_path) if auth_path is not None else Path.cwd() / AUTH_FILE_NAME
    if path.exists():
        return load_auth_file(path)
    logger.info("auth_file_missing", path=str(path))
    return get_config().mysql


def _log_init_outcome(task: asyncio.Task[str]) -> None:
    if task.cancelled():
        logger.warning("engine_init_cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.error("engine_init_failed", error=str(error), cause=repr(error.__cause__))
        return
    logger.info("engine_initialized", status=task.result())
