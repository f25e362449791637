"""Infrastructure layer - cross-cutting concerns."""

from mysql_storage_engine.infrastructure.config import (
    Config,
    MySQLOptions,
    PoolConfig,
    get_config,
    load_auth_file,
)
from mysql_storage_engine.infrastructure.container import Container, get_container
from mysql_storage_engine.infrastructure.logging import setup_logging, get_logger
from mysql_storage_engine.infrastructure.merge import merge_no_array
from mysql_storage_engine.infrastructure.metrics import setup_metrics, MetricsRegistry
from mysql_storage_engine.infrastructure.tracing import get_tracer, setup_tracing, shutdown_tracing

__all__ = [
    "Config",
    "Container",
    "MySQLOptions",
    "PoolConfig",
    "get_config",
    "get_container",
    "load_auth_file",
    "merge_no_array",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "shutdown_tracing",
]
