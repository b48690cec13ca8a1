"""Core types, configuration, registry and errors."""

from adapter_runtime.core.config import AdapterConfig, HealthCheckConfig, LogConfig, RetryPolicy
from adapter_runtime.core.context import InvocationContext, merge_context
from adapter_runtime.core.exceptions import (
    AdapterDiscoveryError,
    AdapterInvocationError,
    AdapterRuntimeError,
    AdapterTransportError,
    ConfigurationError,
    InvalidAdapterError,
)
from adapter_runtime.core.registry import ADAPTER_REGISTRY, get_adapter_type, is_valid_adapter_id
from adapter_runtime.core.types import (
    AdapterType,
    HealthStatus,
    InvocationResult,
    InvocationStatus,
    LogLevel,
)

__all__ = [
    "ADAPTER_REGISTRY",
    "AdapterConfig",
    "AdapterDiscoveryError",
    "AdapterInvocationError",
    "AdapterRuntimeError",
    "AdapterTransportError",
    "AdapterType",
    "ConfigurationError",
    "HealthCheckConfig",
    "HealthStatus",
    "InvalidAdapterError",
    "InvocationContext",
    "InvocationResult",
    "InvocationStatus",
    "LogConfig",
    "LogLevel",
    "RetryPolicy",
    "get_adapter_type",
    "is_valid_adapter_id",
    "merge_context",
]
