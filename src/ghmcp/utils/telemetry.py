"""Tracing for the bridge.

Modules take a tracer from :func:`get_tracer`; it is a no-op until
:func:`configure_telemetry` installs an SDK provider (``ghmcp[otel]``).
Spans go to stderr or an OTLP collector, never to stdout, which carries
the JSON-RPC stream.
"""

from __future__ import annotations

import sys
from typing import Any

from opentelemetry import trace

ATTR_RPC_METHOD = "ghmcp.rpc.method"
ATTR_RPC_ID = "ghmcp.rpc.id"
ATTR_TOOL_NAME = "ghmcp.tool.name"
ATTR_HTTP_METHOD = "ghmcp.http.method"
ATTR_HTTP_PATH = "ghmcp.http.path"
ATTR_HTTP_STATUS = "ghmcp.http.status"
ATTR_SUBSCRIPTION_KEY = "ghmcp.subscription.key"

_INSTRUMENTATION_NAME = "ghmcp"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "ghmcp",
    export_to_stderr: bool = True,
    otlp_endpoint: str | None = None,
) -> Any:
    """Install and return an SDK tracer provider for the bridge.

    The caller owns the provider and should ``shutdown()`` it on exit so
    batched OTLP spans are flushed.  Raises :class:`ImportError` naming the
    missing package when the ``otel`` extra is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = "opentelemetry-sdk is required for tracing; install ghmcp[otel]"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if export_to_stderr:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError as exc:
            msg = "opentelemetry-exporter-otlp is required for OTLP export; install ghmcp[otel]"
            raise ImportError(msg) from exc
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    trace.set_tracer_provider(provider)
    return provider
