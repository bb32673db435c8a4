"""OpenTelemetry tracing helpers for tether.

Engine and registry code call :func:`get_tracer` and open spans
unconditionally. Until a tracer provider is installed those spans are the
API's no-ops.

Span names and the attributes they carry:

``tether.request``
    :data:`ATTR_RPC_METHOD`, :data:`ATTR_RPC_ID`, and
    :data:`ATTR_RPC_ERROR_CODE` when the peer answered with an error.
``tether.tool.call``
    :data:`ATTR_TOOL_NAME`, :data:`ATTR_TOOL_IS_ERROR`.

:func:`configure_telemetry` installs an SDK provider (``tether-rpc[otel]``);
the CLI calls it when ``--otlp-endpoint`` is given.
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

ATTR_RPC_METHOD = "tether.rpc.method"
ATTR_RPC_ID = "tether.rpc.id"
ATTR_RPC_ERROR_CODE = "tether.rpc.error_code"
ATTR_TOOL_NAME = "tether.tool.name"
ATTR_TOOL_IS_ERROR = "tether.tool.is_error"

_INSTRUMENTATION_NAME = "tether"
_INSTALL_HINT = "Install it with: pip install tether-rpc[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer for *name*; a no-op one until telemetry is configured."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "tether",
    otlp_endpoint: str | None = None,
    console: bool = False,
) -> Any:
    """Install a tracer provider exporting tether spans.

    Spans go to the OTLP/gRPC collector at *otlp_endpoint* (batched) and,
    with *console*, to stdout. A stdio server must leave *console* off since
    its stdout carries protocol frames.

    Returns the installed ``TracerProvider``.

    Raises
    ------
    ImportError
        If ``opentelemetry-sdk``, or the OTLP exporter when an endpoint is
        given, is not installed.
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
        msg = f"opentelemetry-sdk is required for configure_telemetry(). {_INSTALL_HINT}"
        raise ImportError(msg) from exc

    # Resolve every exporter before touching global state.
    processors = []
    if otlp_endpoint:
        processors.append(BatchSpanProcessor(_otlp_exporter(otlp_endpoint)))
    if console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter()))

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    return provider


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_INSTALL_HINT}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
