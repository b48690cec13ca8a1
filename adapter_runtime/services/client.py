"""
Adapter Client
==============

The unit of work for the runtime: validates an adapter id, then runs one
``POST /run-adapter`` round-trip under the client's retry policy.

  call_adapter(id, input, context) -> InvocationResult

Unknown ids raise ``InvalidAdapterError`` before any network activity.
Transport failures come back as ``error`` results after retries; they are not
raised. The caller's context is sent as a snapshot and never mutated.

The client also owns the health monitor (probe mode, discovery, and logging
controls live here too).
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from opentelemetry.trace import TracerProvider

from adapter_runtime.core.config import AdapterConfig
from adapter_runtime.core.context import HEALTH_CHECK_FLAG, snapshot
from adapter_runtime.core.registry import validate_adapter_id, validate_adapter_ids
from adapter_runtime.core.types import InvocationResult
from adapter_runtime.infra.health import HealthMonitor, SystemHealthSnapshot
from adapter_runtime.infra.retry import OnRetry, RetryController, Sleep
from adapter_runtime.infra.telemetry import (
    StructuredLogger,
    Tracer,
    get_logger,
    get_tracer,
    log_context,
    mark_error,
)
from adapter_runtime.infra.transport import AdapterTransport
from adapter_runtime.models.adapter import AdapterDiscoveryResponse, AdapterMetadata

class AdapterClient:
    """
    Async client for the adapter service.

    Usage:
        async with AdapterClient(AdapterConfig(base_url="http://localhost:8080")) as client:
            result = await client.call_adapter("risk-analyzer", "contract text", {"userId": "u1"})
            if result.is_error:
                ...

    When ``config.health_check.enabled`` is set, monitoring starts in the
    constructor, so the client must then be created inside a running loop.
    """

    def __init__(
        self,
        config: AdapterConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
        on_retry: OnRetry | None = None,
        tracer_provider: TracerProvider | None = None,
    ) -> None:
        if config.health_check.enabled:
            # Monitoring starts below; fail before any HTTP client exists
            asyncio.get_running_loop()

        self._config = config
        self._logger = get_logger("adapter_runtime.client", config.logging)
        self._tracer = get_tracer("adapter_runtime.client", tracer_provider)
        self._transport = AdapterTransport(
            config.base_url,
            headers=config.headers,
            timeout_s=config.timeout_s,
            http_client=http_client,
            logger=self._logger,
        )
        self._retry = RetryController(
            config.retry, sleep=sleep, on_retry=on_retry, logger=self._logger
        )
        self._health = HealthMonitor(
            self,
            interval_s=config.health_check.interval_s,
            degraded_threshold_ms=config.health_check.degraded_threshold_ms,
            logger=self._logger,
        )

        if config.health_check.enabled:
            self._health.start_monitoring(config.health_check.interval_s)

    @property
    def config(self) -> AdapterConfig:
        return self._config

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    @property
    def tracer(self) -> Tracer:
        return self._tracer

    @property
    def health_monitor(self) -> HealthMonitor:
        return self._health

    # ── Lifecycle ────────────────────────────────────────────────────

    async def __aenter__(self) -> AdapterClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop monitoring and release the HTTP client."""
        await self._health.shutdown()
        await self._transport.aclose()

    # ── Invocation ───────────────────────────────────────────────────

    async def call_adapter(
        self,
        adapter_id: str,
        input: str | None,
        context: Mapping[str, Any] | None = None,
    ) -> InvocationResult:
        try:
            validate_adapter_id(adapter_id)
        except ValueError:
            self._logger.error("invalid_adapter_id", adapter_id=str(adapter_id))
            raise
        return await self._invoke(adapter_id, input, snapshot(context), timeout_s=None)

    async def probe(self, adapter_id: str) -> InvocationResult:
        """Liveness probe: null input, health-check flag, health-check timeout."""
        validate_adapter_id(adapter_id)
        return await self._invoke(
            adapter_id,
            None,
            {HEALTH_CHECK_FLAG: True},
            timeout_s=self._config.health_check.timeout_s,
        )

    async def batch_call_adapters(
        self,
        adapter_ids: Sequence[str],
        input: str | None,
        context: Mapping[str, Any] | None = None,
    ) -> list[InvocationResult]:
        """Call every adapter concurrently; results follow ``adapter_ids`` order."""
        validate_adapter_ids(adapter_ids)
        shared = snapshot(context)
        self._logger.debug("batch_started", adapter_ids=list(adapter_ids))
        return list(
            await asyncio.gather(
                *(self._invoke(adapter_id, input, shared, timeout_s=None) for adapter_id in adapter_ids)
            )
        )

    async def _invoke(
        self,
        adapter_id: str,
        input: str | None,
        context: dict[str, Any],
        *,
        timeout_s: float | None,
    ) -> InvocationResult:
        attributes = {
            "adapter.id": adapter_id,
            "adapter.probe": bool(context.get(HEALTH_CHECK_FLAG)),
        }
        with log_context(adapter_id=adapter_id), self._tracer.span(
            "adapter.invoke", attributes=attributes, kind="client"
        ) as span:
            result = await self._retry.run(
                lambda: self._transport.run_adapter(
                    adapter_id, input, context, timeout_s=timeout_s
                ),
                label=adapter_id,
            )
            span.set_attribute("adapter.status", result.status.value)
            if result.is_error:
                mark_error(span, result.error)
            return result

    # ── Health ───────────────────────────────────────────────────────

    async def check_health(self) -> SystemHealthSnapshot:
        self._logger.debug("health_check_requested")
        return await self._health.check_all()

    def start_health_monitoring(self, interval_s: float | None = None) -> None:
        self._health.start_monitoring(interval_s)

    def stop_health_monitoring(self) -> None:
        self._health.stop_monitoring()

    # ── Discovery ────────────────────────────────────────────────────

    async def get_available_adapters(self) -> AdapterDiscoveryResponse:
        self._logger.debug("adapter_discovery_requested")
        adapters = await self._transport.list_adapters()
        self._logger.debug("adapter_discovery_completed", total=adapters.total)
        return adapters

    async def get_adapter_info(self, adapter_id: str) -> AdapterMetadata | None:
        validate_adapter_id(adapter_id)
        return await self._transport.get_adapter(adapter_id)

    # ── Logging ──────────────────────────────────────────────────────

    def enable_logging(self, **overrides: Any) -> None:
        self._logger.set_config(enabled=True, **overrides)

    def disable_logging(self) -> None:
        self._logger.disable()
