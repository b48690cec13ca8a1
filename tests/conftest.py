"""
Pytest configuration and fixtures for adapter-runtime tests.

The adapter service is faked with ``httpx.MockTransport``; no sockets are
opened.
"""

import asyncio
import json
from typing import Any

import httpx
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from adapter_runtime.core.config import AdapterConfig, HealthCheckConfig, LogConfig, RetryPolicy
from adapter_runtime.services.client import AdapterClient

BASE_URL = "http://adapters.test"


class FakeAdapterService:
    """
    Scripted stand-in for the adapter service.

    ``on(adapter_id, *steps)`` queues responses for an adapter. A step is a
    dict (200 JSON body), an int (bare status code) or an httpx exception
    class (raised as a transport failure). The last step repeats.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self._steps: dict[str, list[Any]] = {}
        self._delays: dict[str, float] = {}
        self.completed: list[str] = []
        self.discovery: dict[str, Any] = {"adapters": [], "total": 0}
        self.discovery_status = 200
        self.metadata: dict[str, dict[str, Any]] = {}

    def on(self, adapter_id: str, *steps: Any, delay: float = 0.0) -> "FakeAdapterService":
        self._steps[adapter_id] = list(steps)
        self._delays[adapter_id] = delay
        return self

    def calls_for(self, adapter_id: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["adapterId"] == adapter_id]

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/adapters":
            return httpx.Response(self.discovery_status, json=self.discovery)
        if request.method == "GET" and path.startswith("/adapters/"):
            adapter_id = path.rsplit("/", 1)[-1]
            if adapter_id not in self.metadata:
                return httpx.Response(404, json={"detail": "not found"})
            return httpx.Response(200, json=self.metadata[adapter_id])

        body = json.loads(request.content)
        self.calls.append(body)
        adapter_id = body["adapterId"]

        delay = self._delays.get(adapter_id, 0.0)
        if delay:
            await asyncio.sleep(delay)

        steps = self._steps.get(adapter_id) or [{"status": "ok"}]
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        self.completed.append(adapter_id)

        if isinstance(step, type) and issubclass(step, httpx.HTTPError):
            raise step(f"simulated {step.__name__}", request=request)
        if isinstance(step, int):
            return httpx.Response(step)
        return httpx.Response(200, json=step)


class SleepRecorder:
    """Drop-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def service():
    return FakeAdapterService()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture
def make_client(service, sleep_recorder):
    """Factory for clients wired to the fake service and a recording sleep."""

    def factory(
        *,
        retry: RetryPolicy | None = None,
        health_check: HealthCheckConfig | None = None,
        logging: LogConfig | None = None,
        headers: dict[str, str] | None = None,
        tracer_provider: TracerProvider | None = None,
    ) -> AdapterClient:
        config = AdapterConfig(
            base_url=BASE_URL,
            headers=headers or {},
            retry=retry or RetryPolicy(),
            health_check=health_check or HealthCheckConfig(),
            logging=logging or LogConfig(),
        )
        return AdapterClient(
            config,
            http_client=service.http_client(),
            sleep=sleep_recorder,
            tracer_provider=tracer_provider,
        )

    return factory
