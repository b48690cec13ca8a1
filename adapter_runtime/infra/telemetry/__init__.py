"""
Telemetry Layer
===============

Structured logging and tracing shared by every runtime component.

Usage:
    from adapter_runtime.infra.telemetry import get_logger, get_tracer

    logger = get_logger(__name__, config.logging)
    tracer = get_tracer(__name__)
    with tracer.span("adapter.invoke", attributes={"adapter.id": "db-logger"}):
        logger.info("adapter_call_completed", adapter_id="db-logger", latency_ms=12.5)
"""

from adapter_runtime.infra.telemetry.logger import (
    BoundLogger,
    StructuredFormatter,
    StructuredLogger,
    current_log_context,
    get_logger,
    log_context,
    setup_logging,
)
from adapter_runtime.infra.telemetry.tracer import Tracer, get_tracer, init_tracing, mark_error

__all__ = [
    "BoundLogger",
    "StructuredFormatter",
    "StructuredLogger",
    "Tracer",
    "current_log_context",
    "get_logger",
    "get_tracer",
    "init_tracing",
    "log_context",
    "mark_error",
    "setup_logging",
]
