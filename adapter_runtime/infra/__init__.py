"""Infrastructure: transport, retry, health monitoring and telemetry."""

from adapter_runtime.infra.health import (
    AdapterHealthRecord,
    HealthMonitor,
    SystemHealthSnapshot,
    aggregate_status,
)
from adapter_runtime.infra.retry import RetryController, compute_retry_delay, is_retryable
from adapter_runtime.infra.transport import AdapterTransport

__all__ = [
    "AdapterHealthRecord",
    "AdapterTransport",
    "HealthMonitor",
    "RetryController",
    "SystemHealthSnapshot",
    "aggregate_status",
    "compute_retry_delay",
    "is_retryable",
]
