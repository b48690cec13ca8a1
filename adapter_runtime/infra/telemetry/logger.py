"""
Structured Logger
=================

Structured logging for the adapter runtime with automatic context injection.

Design:
  - Events are short snake_case names; data travels as keyword fields
  - JSON output for machine parsing, human-readable fallback for development
  - Pipeline run and adapter ids injected from context variables
  - Per-client gating via LogConfig (enabled flag, minimum level, custom sink)

Handlers and formatting are the application's business: call
``setup_logging()`` once at startup (the CLI does) or attach your own.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from adapter_runtime.core.config import LogConfig
from adapter_runtime.core.types import LogLevel

# ── Context Variables ──────────────────────────────────────────────

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)
_adapter_id: ContextVar[str | None] = ContextVar("adapter_id", default=None)

@contextmanager
def log_context(*, run_id: str | None = None, adapter_id: str | None = None) -> Iterator[None]:
    """Bind run/adapter ids to every record emitted inside the block."""
    tokens = []
    if run_id is not None:
        tokens.append((_run_id, _run_id.set(run_id)))
    if adapter_id is not None:
        tokens.append((_adapter_id, _adapter_id.set(adapter_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)

def current_log_context() -> dict[str, str]:
    ctx = {"run_id": _run_id.get(None), "adapter_id": _adapter_id.get(None)}
    return {k: v for k, v in ctx.items() if v is not None}

# ── Structured Formatter ──────────────────────────────────────────

_SKIP = frozenset({
    "name", "msg", "args", "created", "relativeCreated",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "pathname", "filename", "module", "levelno", "levelname",
    "thread", "threadName", "process", "processName", "msecs",
    "taskName", "message",
})
_JSON_SAFE = (str, int, float, bool, type(None))

class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter with automatic context injection."""

    def __init__(self, *, json_output: bool = True, include_traceback: bool = True):
        super().__init__()
        self._json = json_output
        self._include_tb = include_traceback
        self._pid = os.getpid()

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "pid": self._pid,
        }

        ctx = current_log_context()
        if ctx:
            entry["context"] = ctx

        extras: dict[str, Any] = {}
        for key, val in record.__dict__.items():
            if key.startswith("_") or key in _SKIP:
                continue
            extras[key] = val if isinstance(val, _JSON_SAFE + (list, dict)) else str(val)
        if extras:
            entry["data"] = extras

        if record.exc_info and self._include_tb:
            entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
                if record.exc_info[2]
                else None,
            }

        if self._json:
            return json.dumps(entry, default=str, ensure_ascii=False)

        # Human-readable fallback
        run_id = (ctx.get("run_id") or "-")[:8]
        line = (
            f"{entry['timestamp']} | {entry['level']:8s} | "
            f"{run_id} | {entry['logger']}:{entry['line']} | "
            f"{entry['message']}"
        )
        if extras:
            line += " " + json.dumps(extras, default=str, ensure_ascii=False)
        return line

# ── Structured Logger ─────────────────────────────────────────────

_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

class StructuredLogger:
    """
    Wrapper around stdlib logger providing structured logging helpers.

    Usage:
        log = StructuredLogger("adapter_runtime.client", LogConfig(level="debug"))
        log.info("adapter_call_started", adapter_id="risk-analyzer", attempt=1)
        log.warning("adapter_attempt_failed", adapter_id="risk-analyzer", error="timeout")
    """

    __slots__ = ("_config", "_logger", "_name")

    def __init__(self, name: str, config: LogConfig | None = None):
        self._name = name
        self._logger = logging.getLogger(name)
        self._config = config or LogConfig()

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> LogConfig:
        return replace(self._config)

    def set_config(self, **overrides: Any) -> None:
        self._config = replace(self._config, **overrides)

    def enable(self) -> None:
        self.set_config(enabled=True)

    def disable(self) -> None:
        self.set_config(enabled=False)

    def is_enabled_for(self, level: int) -> bool:
        cfg = self._config
        if not cfg.enabled or cfg.level == LogLevel.NONE:
            return False
        return level >= _STDLIB_LEVELS[cfg.level]

    def _log(
        self, level: int, event: str, exc: BaseException | None = None, **kwargs: Any
    ) -> None:
        if not self.is_enabled_for(level):
            return
        if self._config.sink is not None:
            fields = {**current_log_context(), **kwargs}
            if exc is not None:
                fields["exception"] = repr(exc)
            self._config.sink(logging.getLevelName(level).lower(), event, fields)
            return
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, event, extra=kwargs, exc_info=exc, stacklevel=3)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event, **kwargs)

    def error(self, event: str, exc: BaseException | None = None, **kwargs: Any) -> None:
        self._log(logging.ERROR, event, exc=exc, **kwargs)

    def bind(self, **context: Any) -> BoundLogger:
        """Create a child logger with bound context fields."""
        return BoundLogger(self, context)

class BoundLogger:
    """Logger with pre-bound context fields."""

    __slots__ = ("_context", "_parent")

    def __init__(self, parent: StructuredLogger, context: dict[str, Any]):
        self._parent = parent
        self._context = context

    def _merged(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {**self._context, **kwargs}

    def debug(self, event: str, **kwargs: Any) -> None:
        self._parent.debug(event, **self._merged(kwargs))

    def info(self, event: str, **kwargs: Any) -> None:
        self._parent.info(event, **self._merged(kwargs))

    def warning(self, event: str, **kwargs: Any) -> None:
        self._parent.warning(event, **self._merged(kwargs))

    def error(self, event: str, exc: BaseException | None = None, **kwargs: Any) -> None:
        self._parent.error(event, exc=exc, **self._merged(kwargs))

# ── Setup ──────────────────────────────────────────────────────────

def setup_logging(*, level: str = "INFO", json_output: bool | None = None) -> None:
    """
    Attach a structured console handler to the ``adapter_runtime`` logger.

    Args:
        level: Minimum stdlib level for the package logger
        json_output: Force JSON output. Auto-detects if None (JSON outside development)
    """
    if json_output is None:
        json_output = os.getenv("ENVIRONMENT", "development") != "development"

    package_logger = logging.getLogger("adapter_runtime")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Replace handlers from a previous call instead of stacking them
    for handler in list(package_logger.handlers):
        if isinstance(handler.formatter, StructuredFormatter):
            package_logger.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(StructuredFormatter(json_output=json_output))
    package_logger.addHandler(console)

    # Reduce noise from the HTTP stack
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

def get_logger(name: str, config: LogConfig | None = None) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, config)
