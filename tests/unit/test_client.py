"""Unit tests for AdapterClient (invocation, probe, batch, discovery, logging)."""

import httpx
import pytest

from adapter_runtime.core.config import AdapterConfig, HealthCheckConfig, LogConfig, RetryPolicy
from adapter_runtime.core.exceptions import AdapterDiscoveryError, InvalidAdapterError
from adapter_runtime.core.types import AdapterType, InvocationStatus
from adapter_runtime.services.client import AdapterClient


class TestCallAdapter:
    @pytest.mark.asyncio
    async def test_success_returns_output_and_data(self, service, make_client):
        service.on("persona-legal", {"status": "ok", "output": "framed", "data": {"persona": "lawyer"}})
        client = make_client()

        result = await client.call_adapter("persona-legal", "raw", {"userId": "u1"})

        assert result.status == InvocationStatus.OK
        assert result.output == "framed"
        assert result.data == {"persona": "lawyer"}
        assert service.calls == [
            {"adapterId": "persona-legal", "input": "raw", "context": {"userId": "u1"}}
        ]

    @pytest.mark.asyncio
    async def test_request_shape_and_headers(self, service, make_client):
        client = make_client(headers={"Authorization": "Bearer t0k"})
        await client.call_adapter("db-logger", None)

        request = service.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://adapters.test/run-adapter"
        assert request.headers["Authorization"] == "Bearer t0k"
        assert request.headers["Content-Type"] == "application/json"
        assert service.calls[0] == {"adapterId": "db-logger", "input": None, "context": {}}

    @pytest.mark.asyncio
    async def test_unknown_adapter_raises_before_network(self, service, make_client):
        client = make_client()
        with pytest.raises(InvalidAdapterError, match="Invalid adapter ID: nope"):
            await client.call_adapter("nope", "x")
        assert service.requests == []

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, service, make_client, sleep_recorder):
        service.on("risk-analyzer", 422, {"status": "ok"})
        client = make_client(retry=RetryPolicy(max_attempts=3))

        result = await client.call_adapter("risk-analyzer", "x")

        assert result.is_error
        assert "Unprocessable" in result.error
        assert len(service.calls_for("risk-analyzer")) == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_server_errors_retry_with_backoff(self, service, make_client, sleep_recorder):
        service.on("risk-analyzer", 503, 502, {"status": "ok", "output": "scored"})
        client = make_client(retry=RetryPolicy(max_attempts=3, base_delay_s=0.5))

        result = await client.call_adapter("risk-analyzer", "x")

        assert result.output == "scored"
        assert len(service.calls_for("risk-analyzer")) == 3
        assert sleep_recorder.delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_return_error_result(self, service, make_client):
        service.on("slack-sender", httpx.ConnectError)
        client = make_client(retry=RetryPolicy(max_attempts=2))

        result = await client.call_adapter("slack-sender", None)

        assert result.is_error
        assert "simulated ConnectError" in result.error
        assert len(service.calls_for("slack-sender")) == 2

    @pytest.mark.asyncio
    async def test_timeouts_are_retried(self, service, make_client):
        service.on("vector-search-legal", httpx.ReadTimeout, {"status": "ok", "output": "hits"})
        client = make_client()

        result = await client.call_adapter("vector-search-legal", "query")

        assert result.output == "hits"
        assert len(service.calls_for("vector-search-legal")) == 2

    @pytest.mark.asyncio
    async def test_malformed_body_is_a_retryable_failure(self, service, make_client):
        service.on("risk-analyzer", {"unexpected": True}, {"status": "ok"})
        client = make_client()

        result = await client.call_adapter("risk-analyzer", "x")

        assert result.status == InvocationStatus.OK
        assert len(service.calls_for("risk-analyzer")) == 2

    @pytest.mark.asyncio
    async def test_adapter_reported_error_passes_through(self, service, make_client):
        service.on("pdf-text-extractor", {"status": "error", "error": "encrypted pdf"})
        client = make_client()

        result = await client.call_adapter("pdf-text-extractor", "blob")

        assert result.error == "encrypted pdf"
        assert len(service.calls_for("pdf-text-extractor")) == 1

    @pytest.mark.asyncio
    async def test_caller_context_is_not_mutated(self, service, make_client):
        service.on("persona-legal", {"status": "ok", "data": {"persona": "lawyer"}})
        client = make_client()
        context = {"chatId": "c1"}

        await client.call_adapter("persona-legal", "x", context)

        assert context == {"chatId": "c1"}


class TestProbe:
    @pytest.mark.asyncio
    async def test_probe_sends_health_flag_and_no_input(self, service, make_client):
        client = make_client()
        result = await client.probe("telegram-alert")

        assert result.status == InvocationStatus.OK
        assert service.calls[0] == {
            "adapterId": "telegram-alert",
            "input": None,
            "context": {"healthCheck": True},
        }

    @pytest.mark.asyncio
    async def test_probe_uses_health_check_timeout(self, service, make_client):
        client = make_client(health_check=HealthCheckConfig(timeout_s=1.5))
        await client.probe("db-logger")

        timeout = service.requests[0].extensions["timeout"]
        assert timeout["read"] == 1.5


class TestBatchCallAdapters:
    @pytest.mark.asyncio
    async def test_results_follow_request_order(self, service, make_client):
        service.on("risk-analyzer", {"status": "ok", "output": "slow"}, delay=0.05)
        service.on("persona-legal", {"status": "ok", "output": "fast"})
        client = make_client()

        results = await client.batch_call_adapters(["risk-analyzer", "persona-legal"], "x")

        assert [r.output for r in results] == ["slow", "fast"]
        assert service.completed == ["persona-legal", "risk-analyzer"]

    @pytest.mark.asyncio
    async def test_invalid_id_rejected_before_any_call(self, service, make_client):
        client = make_client()
        with pytest.raises(InvalidAdapterError):
            await client.batch_call_adapters(["risk-analyzer", "bogus"], "x")
        assert service.calls == []


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_list_adapters(self, service, make_client):
        service.discovery = {
            "adapters": [
                {"id": "risk-analyzer", "type": "tool", "name": "Risk", "capabilities": ["score"]},
            ],
            "total": 1,
            "timestamp": "2026-01-01T00:00:00Z",
        }
        client = make_client()

        listing = await client.get_available_adapters()

        assert listing.total == 1
        assert listing.adapters[0].type == AdapterType.TOOL
        assert listing.adapters[0].capabilities == ["score"]

    @pytest.mark.asyncio
    async def test_adapter_info(self, service, make_client):
        service.metadata["persona-legal"] = {
            "id": "persona-legal",
            "type": "prompt",
            "name": "Legal persona",
            "inputSchema": {"type": "string"},
        }
        client = make_client()

        info = await client.get_adapter_info("persona-legal")

        assert info is not None
        assert info.name == "Legal persona"
        assert info.input_schema == {"type": "string"}

    @pytest.mark.asyncio
    async def test_adapter_info_missing_returns_none(self, make_client):
        client = make_client()
        assert await client.get_adapter_info("db-logger") is None

    @pytest.mark.asyncio
    async def test_adapter_info_validates_id(self, service, make_client):
        client = make_client()
        with pytest.raises(InvalidAdapterError):
            await client.get_adapter_info("not-registered")
        assert service.requests == []

    @pytest.mark.asyncio
    async def test_discovery_server_error(self, service, make_client):
        service.discovery_status = 500
        client = make_client()

        with pytest.raises(AdapterDiscoveryError) as exc_info:
            await client.get_available_adapters()
        assert exc_info.value.status_code == 500


class TestLoggingControls:
    @pytest.mark.asyncio
    async def test_sink_receives_retry_events(self, service, make_client):
        events = []
        service.on("risk-analyzer", 503, {"status": "ok"})
        client = make_client(
            logging=LogConfig(level="info", sink=lambda level, event, fields: events.append((level, event, fields)))
        )

        await client.call_adapter("risk-analyzer", "x")

        names = [event for _, event, _ in events]
        assert "adapter_attempt_failed" in names
        assert "adapter_retry_scheduled" in names
        failed = next(f for _, e, f in events if e == "adapter_attempt_failed")
        assert failed["adapter_id"] == "risk-analyzer"
        assert failed["attempt"] == 1

    @pytest.mark.asyncio
    async def test_disable_and_enable_logging(self, service, make_client):
        events = []
        client = make_client(logging=LogConfig(level="debug", sink=lambda *args: events.append(args)))

        client.disable_logging()
        await client.call_adapter("db-logger", None)
        assert events == []

        client.enable_logging(level="debug")
        await client.call_adapter("db-logger", None)
        assert any(event == "adapter_request" for _, event, _ in events)

    def test_level_gate(self, make_client):
        events = []
        client = make_client(logging=LogConfig(level="error", sink=lambda *args: events.append(args)))
        client.logger.warning("something_odd")
        client.logger.error("something_broke")
        assert [event for _, event, _ in events] == ["something_broke"]


class TestConstruction:
    def test_health_check_without_loop_fails_before_opening_http_client(self, monkeypatch):
        created = []

        class RecordingClient(httpx.AsyncClient):
            def __init__(self, *args, **kwargs):
                created.append(self)
                super().__init__(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", RecordingClient)
        config = AdapterConfig(base_url="http://x", health_check=HealthCheckConfig(enabled=True))

        with pytest.raises(RuntimeError):
            AdapterClient(config)
        assert created == []
