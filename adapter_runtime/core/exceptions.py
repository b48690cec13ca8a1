"""Custom exception classes for adapter-runtime.

Includes:
- Base exception carrying an error code and timestamp
- Validation and configuration errors (raised, never retried)
- Transport errors with retryability metadata
- Invocation errors raised by pipeline entry points
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any


def is_client_error(status_code: int) -> bool:
    """4xx responses are client errors and are not worth repeating."""
    return 400 <= status_code < 500


class AdapterRuntimeError(Exception):
    """Base exception for all adapter-runtime errors."""

    def __init__(self, detail: str, error_code: str = "ADAPTER_RUNTIME_ERROR"):
        self.detail = detail
        self.error_code = error_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a JSON-serializable dictionary."""
        return {
            "error": self.error_code,
            "detail": self.detail,
            "timestamp": self.timestamp,
        }


class ConfigurationError(AdapterRuntimeError, ValueError):
    """Raised when a policy or client configuration value is invalid."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="CONFIGURATION_ERROR")


class InvalidAdapterError(AdapterRuntimeError, ValueError):
    """Raised when an adapter id is not part of the registry."""

    def __init__(self, adapter_id: str):
        self.adapter_id = adapter_id
        super().__init__(
            detail=f"Invalid adapter ID: {adapter_id}",
            error_code="INVALID_ADAPTER",
        )

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["adapter_id"] = self.adapter_id
        return base


class AdapterTransportError(AdapterRuntimeError):
    """A single round-trip to the adapter service failed.

    ``status_code`` is set for non-2xx HTTP responses and left as ``None`` for
    timeouts, connection failures and unreadable bodies.
    """

    def __init__(self, adapter_id: str, detail: str, status_code: int | None = None):
        self.adapter_id = adapter_id
        self.status_code = status_code
        super().__init__(detail=detail, error_code="ADAPTER_TRANSPORT_ERROR")

    @property
    def retryable(self) -> bool:
        return self.status_code is None or not is_client_error(self.status_code)

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "adapter_id": self.adapter_id,
                "status_code": self.status_code,
                "retryable": self.retryable,
            }
        )
        return base


class AdapterDiscoveryError(AdapterRuntimeError):
    """Raised when an adapter discovery request fails."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(detail=detail, error_code="ADAPTER_DISCOVERY_ERROR")


class AdapterInvocationError(AdapterRuntimeError):
    """An adapter in a pipeline reported an error after retries.

    ``failures`` lists every ``(adapter_id, error)`` pair observed by the
    pipeline step; the exception itself names the first of them.
    """

    _PREFIXES = {
        "before_llm": "Adapter",
        "after_llm": "Post-LLM adapter",
        "parallel": "Adapter",
    }

    def __init__(
        self,
        adapter_id: str,
        error: str,
        stage: str,
        failures: Sequence[tuple[str, str]] = (),
    ):
        self.adapter_id = adapter_id
        self.error = error
        self.stage = stage
        self.failures = tuple(failures) or ((adapter_id, error),)
        prefix = self._PREFIXES.get(stage, "Adapter")
        super().__init__(
            detail=f"{prefix} {adapter_id} failed after retries: {error}",
            error_code=f"PIPELINE_{stage.upper()}_ERROR",
        )

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "adapter_id": self.adapter_id,
                "stage": self.stage,
                "failures": [
                    {"adapter_id": adapter_id, "error": error}
                    for adapter_id, error in self.failures
                ],
            }
        )
        return base
