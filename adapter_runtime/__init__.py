"""
adapter-runtime
===============

Client-side orchestration for remote adapters: retrying invocations, context
propagation across sequential and parallel chains, and health monitoring.

Usage:
    from adapter_runtime import AdapterConfig, AdapterExecutor

    async with AdapterExecutor(AdapterConfig(base_url="http://localhost:8080")) as executor:
        pre = await executor.run_before_llm("raw text", ["pdf-text-extractor", "persona-legal"])
        ...
        await executor.run_after_llm(pre.context, ["db-logger"])
"""

from adapter_runtime.core import (
    ADAPTER_REGISTRY,
    AdapterConfig,
    AdapterDiscoveryError,
    AdapterInvocationError,
    AdapterRuntimeError,
    AdapterTransportError,
    AdapterType,
    ConfigurationError,
    HealthCheckConfig,
    HealthStatus,
    InvalidAdapterError,
    InvocationContext,
    InvocationResult,
    InvocationStatus,
    LogConfig,
    LogLevel,
    RetryPolicy,
    get_adapter_type,
    is_valid_adapter_id,
    merge_context,
)
from adapter_runtime.infra import AdapterHealthRecord, HealthMonitor, SystemHealthSnapshot
from adapter_runtime.services import AdapterClient, AdapterExecutor, BeforeLLMResult

__version__ = "0.1.0"

__all__ = [
    "ADAPTER_REGISTRY",
    "AdapterClient",
    "AdapterConfig",
    "AdapterDiscoveryError",
    "AdapterExecutor",
    "AdapterHealthRecord",
    "AdapterInvocationError",
    "AdapterRuntimeError",
    "AdapterTransportError",
    "AdapterType",
    "BeforeLLMResult",
    "ConfigurationError",
    "HealthCheckConfig",
    "HealthMonitor",
    "HealthStatus",
    "InvalidAdapterError",
    "InvocationContext",
    "InvocationResult",
    "InvocationStatus",
    "LogConfig",
    "LogLevel",
    "RetryPolicy",
    "SystemHealthSnapshot",
    "get_adapter_type",
    "is_valid_adapter_id",
    "merge_context",
]
