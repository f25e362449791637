"""Application layer - the engine facade and the host loading hook."""

from mysql_storage_engine.application.entrypoint import (
    build_container,
    configure_observability,
    load_engine,
)
from mysql_storage_engine.application.mysql_storage_engine import (
    EngineState,
    MySQLStorageEngine,
    PoolFactory,
)

__all__ = [
    "EngineState",
    "MySQLStorageEngine",
    "PoolFactory",
    "build_container",
    "configure_observability",
    "load_engine",
]
