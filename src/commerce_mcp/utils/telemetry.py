"""Tracing for the request pipeline.

Every layer opens spans through :func:`get_tracer`; without an SDK the
OpenTelemetry API hands back no-op tracers, so instrumentation is always on
and only exporting is opt-in.  Span names used by the server:

``mcp.http``
    one HTTP exchange (transport layer)
``mcp.request``
    one raw payload, single or batch
``mcp.dispatch``
    one JSON-RPC call
``mcp.tool`` / ``mcp.resource`` / ``mcp.prompt``
    the handler invocation

Exporting needs the ``otel`` extra (``pip install commerce-mcp[otel]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from commerce_mcp.config import TelemetrySettings

ATTR_RPC_SYSTEM = "rpc.system"
ATTR_RPC_METHOD = "rpc.method"
ATTR_RPC_REQUEST_ID = "rpc.jsonrpc.request_id"
ATTR_RPC_ERROR_CODE = "rpc.jsonrpc.error_code"
ATTR_SESSION_ID = "mcp.session.id"
ATTR_BATCH_SIZE = "mcp.batch.size"
ATTR_CALL_STATE = "mcp.call.state"
ATTR_NOTIFICATION = "mcp.notification"
ATTR_TOOL_NAME = "mcp.tool.name"
ATTR_RESOURCE_URI = "mcp.resource.uri"
ATTR_PROMPT_NAME = "mcp.prompt.name"
ATTR_TRANSPORT = "mcp.transport"

_INSTRUMENTATION_NAME = "commerce_mcp"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Tracer for *name*, a no-op until :func:`configure_telemetry` runs."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def mark_rpc_error(span: trace.Span, code: int, message: str) -> None:
    """Record a JSON-RPC error code on *span* and flag it as failed."""
    span.set_attribute(ATTR_RPC_ERROR_CODE, code)
    span.set_status(Status(StatusCode.ERROR, message))


def configure_telemetry(
    settings: TelemetrySettings,
    *,
    service_name: str = "commerce-mcp",
    allow_console: bool = True,
) -> Any:
    """Install a global tracer provider built from *settings*.

    *allow_console* is forced off by the stdio command, whose stdout carries
    protocol frames.  Returns the provider so callers can flush it on exit.

    Raises
    ------
    ImportError
        If ``opentelemetry-sdk`` (or the OTLP exporter, when an endpoint is
        configured) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = "opentelemetry-sdk is required for tracing; install commerce-mcp[otel]"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if settings.export_to_console and allow_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(settings.otlp_endpoint)))

    trace.set_tracer_provider(provider)
    return provider


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
            OTLPSpanExporter,
        )
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required to export spans to {endpoint}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
