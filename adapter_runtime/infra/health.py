"""
Health Monitor: Periodic Adapter Probing
=========================================

Keeps a live status record for every registered adapter by sending probe
invocations (null input, ``{"healthCheck": True}`` context) through the
client, and aggregates a system-wide status:

  - any adapter unhealthy  -> system unhealthy
  - else any degraded      -> system degraded
  - else                   -> healthy

A successful probe slower than ``degraded_threshold_ms`` counts as degraded.
Probe failures never propagate; they become unhealthy records.

Records are created on first probe and updated in place afterwards; only the
latest value is kept.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Protocol

from adapter_runtime.core.exceptions import ConfigurationError
from adapter_runtime.core.registry import adapter_ids as registered_adapter_ids
from adapter_runtime.core.types import HealthStatus, InvocationResult
from adapter_runtime.infra.telemetry import StructuredLogger, get_logger

NOT_CHECKED_MESSAGE = "Not checked yet"
HIGH_LATENCY_MESSAGE = "High latency detected"

class Prober(Protocol):
    async def probe(self, adapter_id: str) -> InvocationResult: ...

@dataclass
class AdapterHealthRecord:
    """Latest probe outcome for one adapter."""

    adapter_id: str
    status: HealthStatus
    latency_ms: float = 0.0
    last_check: datetime = field(default_factory=lambda: datetime.now(UTC))
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
            "last_check": self.last_check.isoformat(),
            "message": self.message,
        }

@dataclass
class SystemHealthSnapshot:
    """Aggregate system health at a point in time. Never persisted."""

    status: HealthStatus
    adapters: dict[str, AdapterHealthRecord]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "adapters": {name: rec.to_dict() for name, rec in self.adapters.items()},
        }

def aggregate_status(statuses: Iterable[HealthStatus]) -> HealthStatus:
    """Worst status wins."""
    seen = set(statuses)
    if HealthStatus.UNHEALTHY in seen:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in seen:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY

class HealthMonitor:
    """
    Per-adapter health tracking with an optional background probe loop.

    Usage:
        monitor = HealthMonitor(client)
        snapshot = await monitor.check_all()     # one-shot
        monitor.start_monitoring(interval_s=30)  # needs a running event loop
        ...
        await monitor.shutdown()
    """

    def __init__(
        self,
        client: Prober,
        *,
        adapter_ids: Sequence[str] | None = None,
        interval_s: float = 60.0,
        degraded_threshold_ms: float = 1000.0,
        clock: Callable[[], float] = time.monotonic,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._client = client
        self._adapter_ids = tuple(adapter_ids) if adapter_ids is not None else registered_adapter_ids()
        self._interval_s = interval_s
        self._degraded_threshold_ms = degraded_threshold_ms
        self._clock = clock
        self._logger = logger or get_logger(__name__)

        self._records: dict[str, AdapterHealthRecord] = {}
        self._last_check: datetime | None = None
        self._task: asyncio.Task[None] | None = None
        self._cancelled: set[asyncio.Task[None]] = set()

    # ── Probing ──────────────────────────────────────────────────────

    async def check_one(self, adapter_id: str) -> AdapterHealthRecord:
        """Probe one adapter and update its record. Never raises."""
        start = self._clock()
        try:
            result = await self._client.probe(adapter_id)
        except Exception as exc:  # any probe failure is a health signal
            latency_ms = self._elapsed_ms(start)
            return self._update(adapter_id, HealthStatus.UNHEALTHY, latency_ms, str(exc) or type(exc).__name__)

        latency_ms = self._elapsed_ms(start)
        if result.is_error:
            return self._update(adapter_id, HealthStatus.UNHEALTHY, latency_ms, result.error)
        if latency_ms > self._degraded_threshold_ms:
            return self._update(adapter_id, HealthStatus.DEGRADED, latency_ms, HIGH_LATENCY_MESSAGE)
        return self._update(adapter_id, HealthStatus.HEALTHY, latency_ms, None)

    async def check_all(self) -> SystemHealthSnapshot:
        """Probe every adapter in turn and aggregate the result."""
        adapters: dict[str, AdapterHealthRecord] = {}
        for adapter_id in self._adapter_ids:
            record = await self.check_one(adapter_id)
            adapters[adapter_id] = replace(record)

        self._last_check = datetime.now(UTC)
        snapshot = SystemHealthSnapshot(
            status=aggregate_status(r.status for r in adapters.values()),
            adapters=adapters,
            timestamp=self._last_check,
        )
        self._logger.info(
            "system_health_checked",
            status=snapshot.status.value,
            adapters=len(adapters),
            unhealthy=sum(1 for r in adapters.values() if r.status == HealthStatus.UNHEALTHY),
        )
        return snapshot

    # ── Queries ──────────────────────────────────────────────────────

    def get_adapter_health(self, adapter_id: str) -> AdapterHealthRecord | None:
        record = self._records.get(adapter_id)
        return replace(record) if record else None

    def get_last_system_health(self) -> SystemHealthSnapshot | None:
        """Rebuild a snapshot from stored records, or None before the first full check."""
        if self._last_check is None:
            return None

        adapters: dict[str, AdapterHealthRecord] = {}
        for adapter_id in self._adapter_ids:
            record = self._records.get(adapter_id)
            adapters[adapter_id] = replace(record) if record else AdapterHealthRecord(
                adapter_id=adapter_id,
                status=HealthStatus.UNHEALTHY,
                message=NOT_CHECKED_MESSAGE,
            )
        return SystemHealthSnapshot(
            status=aggregate_status(r.status for r in adapters.values()),
            adapters=adapters,
            timestamp=self._last_check,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Scheduling ───────────────────────────────────────────────────

    def start_monitoring(self, interval_s: float | None = None) -> None:
        """
        Run one check now, then one every ``interval_s`` seconds.

        Restarting replaces the previous schedule; there is never more than
        one monitor task per instance.
        """
        interval = interval_s if interval_s is not None else self._interval_s
        if interval <= 0:
            raise ConfigurationError("interval_s must be > 0")
        loop = asyncio.get_running_loop()

        self.stop_monitoring()
        self._task = loop.create_task(self._monitor_loop(interval), name="adapter-health-monitor")
        self._logger.info("health_monitoring_started", interval_s=interval)

    def stop_monitoring(self) -> None:
        """Cancel scheduled checks. Safe to call when not running."""
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
            self._cancelled.add(task)
            task.add_done_callback(self._cancelled.discard)
        self._logger.info("health_monitoring_stopped")

    async def shutdown(self) -> None:
        """Stop monitoring and wait for cancelled tasks to finish."""
        self.stop_monitoring()
        pending = list(self._cancelled)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _monitor_loop(self, interval_s: float) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self._run_cycle()
            next_tick += interval_s
            now = loop.time()
            if next_tick <= now:
                # Cycle overran the interval; skip the ticks it missed
                next_tick += ((now - next_tick) // interval_s + 1) * interval_s
            await asyncio.sleep(next_tick - now)

    async def _run_cycle(self) -> None:
        try:
            await self.check_all()
        except Exception as exc:  # the loop must outlive any single cycle
            self._logger.error("health_cycle_failed", exc=exc)

    # ── Internal ─────────────────────────────────────────────────────

    def _elapsed_ms(self, start: float) -> float:
        return max(0.0, (self._clock() - start) * 1000)

    def _update(
        self,
        adapter_id: str,
        status: HealthStatus,
        latency_ms: float,
        message: str | None,
    ) -> AdapterHealthRecord:
        now = datetime.now(UTC)
        record = self._records.get(adapter_id)
        if record is None:
            record = AdapterHealthRecord(
                adapter_id=adapter_id,
                status=status,
                latency_ms=latency_ms,
                last_check=now,
                message=message,
            )
            self._records[adapter_id] = record
        else:
            record.status = status
            record.latency_ms = latency_ms
            record.last_check = now
            record.message = message

        if status != HealthStatus.HEALTHY:
            self._logger.warning(
                "adapter_unhealthy" if status == HealthStatus.UNHEALTHY else "adapter_degraded",
                adapter_id=adapter_id,
                status=status.value,
                latency_ms=round(latency_ms, 2),
                detail=message,
            )
        return record
