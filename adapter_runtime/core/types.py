"""
Canonical Type Definitions
===========================

Shared enums and value types used across the runtime:
- AdapterType: category of a registered adapter
- InvocationStatus / InvocationResult: outcome of one adapter call
- HealthStatus: per-adapter and system-wide health
- LogLevel: levels accepted by LogConfig
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

__all__ = [
    "AdapterType",
    "HealthStatus",
    "InvocationResult",
    "InvocationStatus",
    "LogLevel",
]

class AdapterType(StrEnum):
    """What kind of work an adapter performs."""

    TOOL = "tool"  # Document processing, search, analysis
    PROMPT = "prompt"  # Persona / prompt shaping
    ACTION = "action"  # Side effects: notifications, persistence

class InvocationStatus(StrEnum):
    OK = "ok"
    ERROR = "error"

class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

class LogLevel(StrEnum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    NONE = "none"

@dataclass(frozen=True, slots=True)
class InvocationResult:
    """
    Outcome of a single adapter invocation.

    Exactly one case is populated: ``ok`` results may carry ``output`` and a
    partial context update in ``data``; ``error`` results carry only ``error``.
    """

    status: InvocationStatus
    output: str | None = None
    data: dict[str, Any] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.status == InvocationStatus.ERROR:
            if not self.error:
                raise ValueError("error results require a message")
            if self.output is not None or self.data is not None:
                raise ValueError("error results cannot carry output or data")
        elif self.error is not None:
            raise ValueError("ok results cannot carry an error")

    @classmethod
    def ok(cls, output: str | None = None, data: dict[str, Any] | None = None) -> InvocationResult:
        return cls(status=InvocationStatus.OK, output=output, data=data)

    @classmethod
    def failure(cls, message: str) -> InvocationResult:
        return cls(status=InvocationStatus.ERROR, error=message or "Unknown error occurred")

    @property
    def is_error(self) -> bool:
        return self.status == InvocationStatus.ERROR

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status.value}
        if self.output is not None:
            payload["output"] = self.output
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload
