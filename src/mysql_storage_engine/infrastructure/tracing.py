"""OpenTelemetry tracing for the storage engine.

Spans are created through the global tracer provider. Until a host (or
``configure_observability``) installs one, OpenTelemetry hands out a
no-op tracer and spans cost next to nothing.

Span names:
    storage.init          engine initialization
    storage.ensure_table  table lookup and creation
    storage.migrate       migration of a previous engine's dataset
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from mysql_storage_engine import ENGINE_NAME, __version__

if TYPE_CHECKING:
    from mysql_storage_engine.infrastructure.config import MySQLOptions

_tracer: trace.Tracer | None = None
_provider: TracerProvider | None = None


def setup_tracing(
    service_name: str = "mysql_storage_engine",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install a tracer provider and return the engine's tracer.

    Args:
        service_name: Service name reported with every span
        otlp_endpoint: OTLP gRPC collector endpoint (e.g., "http://localhost:4317")
        console_export: Also print finished spans to stdout

    Returns:
        The engine's tracer
    """
    global _tracer, _provider

    _provider = TracerProvider(
        resource=Resource.create({"service.name": service_name, "service.version": __version__})
    )
    if otlp_endpoint:
        _provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
    if console_export:
        _provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_provider)
    _tracer = trace.get_tracer(ENGINE_NAME, __version__)
    return _tracer


def shutdown_tracing() -> None:
    """Flush pending spans and stop the exporters installed by ``setup_tracing``."""
    global _tracer, _provider
    if _provider is not None:
        _provider.shutdown()
    _provider = None
    _tracer = None


def get_tracer() -> trace.Tracer:
    """The engine's tracer (no-op until a provider is installed)."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(ENGINE_NAME, __version__)
    return _tracer


def db_span_attributes(options: MySQLOptions) -> dict[str, Any]:
    """Database semantic-convention attributes for spans about ``options``' table."""
    return {
        "db.system": "mysql",
        "db.name": options.database,
        "db.sql.table": options.table,
        "server.address": options.host,
        "server.port": options.port,
    }


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """
    Run the block inside a span.

    An exception leaving the block is recorded on the span, which is then
    marked as failed.

    Args:
        name: Span name
        attributes: Span attributes; None values are dropped

    Yields:
        The span
    """
    attrs = {k: v for k, v in (attributes or {}).items() if v is not None}
    with get_tracer().start_as_current_span(name, attributes=attrs) as span:
        yield span
