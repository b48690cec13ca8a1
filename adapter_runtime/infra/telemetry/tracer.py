"""
Distributed Tracing
===================

OpenTelemetry spans around adapter calls and pipeline runs.

Without a configured TracerProvider the OpenTelemetry API hands out
non-recording spans, so instrumented code runs unchanged whether or not the
application exports traces. Call ``init_tracing()`` once at startup to export
(the CLI does this for ``--trace``), or pass a provider explicitly to the
client.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace as otel_trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from adapter_runtime.infra.telemetry.logger import get_logger

logger = get_logger(__name__)

_KINDS = {
    "internal": SpanKind.INTERNAL,
    "client": SpanKind.CLIENT,
}

class Tracer:
    """
    Thin wrapper over an OpenTelemetry tracer.

    Uses the global provider unless one is given.
    """

    def __init__(self, name: str, provider: otel_trace.TracerProvider | None = None):
        self._name = name
        self._tracer = (
            provider.get_tracer(name) if provider is not None else otel_trace.get_tracer(name)
        )

    @property
    def name(self) -> str:
        return self._name

    @contextmanager
    def span(
        self,
        name: str,
        *,
        attributes: dict[str, Any] | None = None,
        kind: str = "internal",
    ) -> Iterator[Span]:
        """
        Create a span for the enclosed block.

        Exceptions escaping the block are recorded and mark the span as failed.

        Args:
            name: Span name (e.g. "adapter.invoke", "pipeline.before_llm")
            attributes: Initial span attributes
            kind: "internal" or "client"
        """
        with self._tracer.start_as_current_span(
            name,
            kind=_KINDS.get(kind, SpanKind.INTERNAL),
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            try:
                yield span
            except Exception as exc:
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                raise

def mark_error(span: Span, description: str | None) -> None:
    """Flag a span as failed without an exception (adapter-reported errors)."""
    span.set_status(Status(StatusCode.ERROR, description))

def init_tracing(
    *,
    service_name: str = "adapter-runtime",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install a global TracerProvider. Call once at application startup.

    Spans are batched to ``exporter`` (JSON on stderr by default).
    """
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter or ConsoleSpanExporter(out=sys.stderr)))
    otel_trace.set_tracer_provider(provider)
    logger.info("tracing_initialized", service=service_name)
    return provider

def get_tracer(name: str, provider: otel_trace.TracerProvider | None = None) -> Tracer:
    return Tracer(name, provider)
