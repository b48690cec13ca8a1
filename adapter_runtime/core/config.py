"""
Client Configuration
====================

Dataclass configs consumed by the client, retry controller, health monitor
and logger. Everything is passed explicitly at construction; there is no
process-wide default instance.

Environment variables (``AdapterConfig.from_env``, default prefix ``ADAPTER_``):
  BASE_URL, TIMEOUT_S, HEADERS (JSON object),
  RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY_S, RETRY_MAX_DELAY_S,
  RETRY_BACKOFF_MULTIPLIER, HEALTH_ENABLED, HEALTH_INTERVAL_S,
  HEALTH_TIMEOUT_S, LOG_LEVEL
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from adapter_runtime.core.exceptions import ConfigurationError
from adapter_runtime.core.types import LogLevel

# sink(level, event, fields)
LogSink = Callable[[str, str, dict[str, Any]], None]

_TRUTHY = frozenset({"1", "true", "yes", "on"})

@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour for adapter calls. Fixed for the lifetime of a client."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 10.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1")
        if self.base_delay_s < 0:
            raise ConfigurationError("base_delay_s must be >= 0")
        if self.max_delay_s < self.base_delay_s:
            raise ConfigurationError("max_delay_s must be >= base_delay_s")
        if self.backoff_multiplier < 1:
            raise ConfigurationError("backoff_multiplier must be >= 1")

    def with_overrides(self, **overrides: Any) -> RetryPolicy:
        """Copy with the given fields replaced (unset fields keep their values)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

@dataclass(frozen=True)
class HealthCheckConfig:
    """Periodic adapter probing."""

    enabled: bool = False
    interval_s: float = 60.0
    timeout_s: float = 5.0
    degraded_threshold_ms: float = 1000.0

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ConfigurationError("interval_s must be > 0")
        if self.timeout_s <= 0:
            raise ConfigurationError("timeout_s must be > 0")
        if self.degraded_threshold_ms < 0:
            raise ConfigurationError("degraded_threshold_ms must be >= 0")

@dataclass
class LogConfig:
    """Per-client logging switches. Handlers are configured by the application."""

    enabled: bool = True
    level: LogLevel = LogLevel.INFO
    sink: LogSink | None = None

    def __post_init__(self) -> None:
        raw = str(self.level).lower()
        try:
            self.level = LogLevel("warning" if raw == "warn" else raw)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown log level: {self.level}") from exc

@dataclass(frozen=True)
class AdapterConfig:
    """Everything an AdapterClient needs."""

    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_s: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    health_check: HealthCheckConfig = field(default_factory=HealthCheckConfig)
    logging: LogConfig = field(default_factory=LogConfig)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigurationError("base_url is required")
        if self.timeout_s <= 0:
            raise ConfigurationError("timeout_s must be > 0")
        # Normalize so f"{base_url}/run-adapter" never doubles the slash
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "headers", dict(self.headers))

    @classmethod
    def from_env(
        cls,
        prefix: str = "ADAPTER_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AdapterConfig:
        """Build a config from environment variables; keyword overrides win."""
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(f"{prefix}{name}")
            return value if value not in (None, "") else None

        def number(name: str, cast: Callable[[str], Any]) -> Any:
            raw = get(name)
            if raw is None:
                return None
            try:
                return cast(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{prefix}{name} is not a valid number: {raw!r}") from exc

        headers: dict[str, str] = {}
        raw_headers = get("HEADERS")
        if raw_headers:
            try:
                parsed = json.loads(raw_headers)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"{prefix}HEADERS must be a JSON object") from exc
            if not isinstance(parsed, dict):
                raise ConfigurationError(f"{prefix}HEADERS must be a JSON object")
            headers = {str(k): str(v) for k, v in parsed.items()}

        retry = RetryPolicy().with_overrides(
            max_attempts=number("RETRY_MAX_ATTEMPTS", int),
            base_delay_s=number("RETRY_BASE_DELAY_S", float),
            max_delay_s=number("RETRY_MAX_DELAY_S", float),
            backoff_multiplier=number("RETRY_BACKOFF_MULTIPLIER", float),
        )

        health_kwargs: dict[str, Any] = {}
        enabled = get("HEALTH_ENABLED")
        if enabled is not None:
            health_kwargs["enabled"] = enabled.lower() in _TRUTHY
        interval = number("HEALTH_INTERVAL_S", float)
        if interval is not None:
            health_kwargs["interval_s"] = interval
        health_timeout = number("HEALTH_TIMEOUT_S", float)
        if health_timeout is not None:
            health_kwargs["timeout_s"] = health_timeout

        kwargs: dict[str, Any] = {
            "base_url": get("BASE_URL") or "",
            "headers": headers,
            "retry": retry,
            "health_check": HealthCheckConfig(**health_kwargs),
            "logging": LogConfig(level=get("LOG_LEVEL") or LogLevel.INFO),
        }
        timeout = number("TIMEOUT_S", float)
        if timeout is not None:
            kwargs["timeout_s"] = timeout
        kwargs.update(overrides)

        if not kwargs["base_url"]:
            raise ConfigurationError(f"{prefix}BASE_URL is not set")
        return cls(**kwargs)
