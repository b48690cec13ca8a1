"""
Retry Controller
================

Bounded retries with exponential backoff around a zero-argument async
operation. Transport failures never escape: after exhaustion (or a
non-retryable 4xx) the caller receives an ``error`` InvocationResult.

Delay before attempt k+1 (attempts are 1-indexed):
    min(base_delay_s * backoff_multiplier ** (k - 1), max_delay_s)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from adapter_runtime.core.config import RetryPolicy
from adapter_runtime.core.exceptions import is_client_error
from adapter_runtime.core.types import InvocationResult
from adapter_runtime.infra.telemetry import StructuredLogger, get_logger

Operation = Callable[[], Awaitable[InvocationResult]]
OnRetry = Callable[[int, Exception, float], None]
Sleep = Callable[[float], Awaitable[None]]

def compute_retry_delay(policy: RetryPolicy, attempt: int) -> float:
    """Delay to wait after failed ``attempt`` before trying again."""
    try:
        delay = policy.base_delay_s * (policy.backoff_multiplier ** (attempt - 1))
    except OverflowError:
        return policy.max_delay_s
    return min(delay, policy.max_delay_s)

def is_retryable(exc: BaseException) -> bool:
    """Client errors (4xx) fail fast; everything else is worth another try."""
    status = getattr(exc, "status_code", None)
    return not (isinstance(status, int) and is_client_error(status))

def _error_message(exc: BaseException | None) -> str:
    if exc is None:
        return "Unknown error occurred"
    return str(exc) or type(exc).__name__

class RetryController:
    """
    Runs an operation up to ``policy.max_attempts`` times.

    The policy is fixed at construction. ``sleep`` is injectable so backoff can
    be observed without waiting; ``on_retry(attempt, exc, delay_s)`` is called
    before each backoff sleep.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_retry: OnRetry | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._on_retry = on_retry
        self._logger = logger or get_logger(__name__)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(self, operation: Operation, *, label: str = "operation") -> InvocationResult:
        policy = self._policy
        log = self._logger.bind(adapter_id=label)
        last_exc: Exception | None = None
        retryable = True

        for attempt in range(1, policy.max_attempts + 1):
            try:
                return await operation()
            except Exception as exc:  # transport boundary: every failure becomes a result
                last_exc = exc
                retryable = is_retryable(exc)
                log.warning(
                    "adapter_attempt_failed",
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    retryable=retryable,
                    error=_error_message(exc),
                )
                if not retryable:
                    break
                if attempt < policy.max_attempts:
                    delay = compute_retry_delay(policy, attempt)
                    log.info(
                        "adapter_retry_scheduled",
                        attempt=attempt,
                        max_attempts=policy.max_attempts,
                        delay_s=delay,
                    )
                    if self._on_retry:
                        self._on_retry(attempt, exc, delay)
                    await self._sleep(delay)

        result = InvocationResult.failure(_error_message(last_exc))
        if retryable:
            log.error("adapter_retries_exhausted", error=result.error)
        else:
            log.error("adapter_failed_non_retryable", error=result.error)
        return result
