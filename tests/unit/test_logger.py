"""Unit tests for structured logging."""

import json
import logging

from adapter_runtime.core.config import LogConfig
from adapter_runtime.infra.telemetry import (
    StructuredFormatter,
    current_log_context,
    get_logger,
    log_context,
)


def make_record(msg: str = "adapter_request", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="adapter_runtime.client",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    def test_nested_blocks_restore(self):
        assert current_log_context() == {}
        with log_context(run_id="r1"):
            with log_context(adapter_id="db-logger"):
                assert current_log_context() == {"run_id": "r1", "adapter_id": "db-logger"}
            assert current_log_context() == {"run_id": "r1"}
        assert current_log_context() == {}


class TestStructuredFormatter:
    def test_json_output_with_context_and_fields(self):
        formatter = StructuredFormatter(json_output=True)
        with log_context(run_id="abc123", adapter_id="risk-analyzer"):
            line = formatter.format(make_record(attempt=2, error="timeout"))

        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["message"] == "adapter_request"
        assert entry["context"] == {"run_id": "abc123", "adapter_id": "risk-analyzer"}
        assert entry["data"] == {"attempt": 2, "error": "timeout"}

    def test_human_readable_output(self):
        formatter = StructuredFormatter(json_output=False)
        line = formatter.format(make_record("health_monitoring_started", interval_s=30))
        assert "INFO" in line
        assert "health_monitoring_started" in line
        assert '"interval_s": 30' in line


class TestStructuredLogger:
    def test_sink_receives_fields_and_context(self):
        events = []
        log = get_logger("t", LogConfig(sink=lambda *args: events.append(args)))
        with log_context(adapter_id="slack-sender"):
            log.info("adapter_call", attempt=1)
        assert events == [("info", "adapter_call", {"adapter_id": "slack-sender", "attempt": 1})]

    def test_error_with_exception(self):
        events = []
        log = get_logger("t", LogConfig(sink=lambda *args: events.append(args)))
        log.error("cycle_failed", exc=RuntimeError("boom"))
        assert events[0][2]["exception"] == "RuntimeError('boom')"

    def test_none_level_silences_everything(self):
        events = []
        log = get_logger("t", LogConfig(level="none", sink=lambda *args: events.append(args)))
        log.error("anything")
        assert events == []

    def test_bound_logger_merges_fields(self):
        events = []
        log = get_logger("t", LogConfig(level="debug", sink=lambda *args: events.append(args)))
        log.bind(component="health").debug("tick", n=1)
        assert events == [("debug", "tick", {"component": "health", "n": 1})]

    def test_stdlib_path(self, caplog):
        log = get_logger("adapter_runtime.test")
        with caplog.at_level(logging.INFO, logger="adapter_runtime.test"):
            log.info("hello_world", count=3)
        record = caplog.records[-1]
        assert record.getMessage() == "hello_world"
        assert record.count == 3
