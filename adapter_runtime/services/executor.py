"""
Adapter Executor: Pipeline Orchestration
=========================================

Sequences adapter calls around an LLM step and threads one context mapping
through them:

  run_before_llm   sequential; each adapter's output becomes the next input
  run_after_llm    sequential; null input, context only
  run_parallel     concurrent fan-out over one input and context snapshot

Rules:
- The run owns its context: a copy of the caller's mapping, only ever merged
  into (last write wins), never replaced.
- Sequential chains stop at the first ``error`` result and raise
  ``AdapterInvocationError`` naming the adapter; later adapters never run.
- The parallel fan-out waits for every call, merges updates in list order
  regardless of completion order, then raises for the first failure in list
  order (all failures are kept on the exception).
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from adapter_runtime.core.config import AdapterConfig
from adapter_runtime.core.context import (
    InvocationContext,
    merge_all,
    merge_context,
    new_context,
)
from adapter_runtime.core.exceptions import AdapterInvocationError
from adapter_runtime.core.registry import validate_adapter_ids
from adapter_runtime.core.types import InvocationResult
from adapter_runtime.infra.telemetry import log_context
from adapter_runtime.services.client import AdapterClient

@dataclass(frozen=True, slots=True)
class BeforeLLMResult:
    """Prompt and context produced by the pre-processing chain."""

    prompt: str
    context: InvocationContext

class AdapterExecutor:
    """
    Runs adapter chains through a single ``AdapterClient``.

    Pass either a config (the executor builds and owns its client) or an
    existing client.
    """

    def __init__(
        self,
        config: AdapterConfig | None = None,
        *,
        client: AdapterClient | None = None,
    ) -> None:
        if (config is None) == (client is None):
            raise ValueError("Pass exactly one of config or client")
        self._owns_client = client is None
        self._client = client or AdapterClient(config)  # type: ignore[arg-type]
        self._logger = self._client.logger

    @property
    def client(self) -> AdapterClient:
        return self._client

    async def __aenter__(self) -> AdapterExecutor:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ── Sequential chains ────────────────────────────────────────────

    async def run_before_llm(
        self,
        input: str,
        adapter_ids: Sequence[str],
        context: Mapping[str, Any] | None = None,
    ) -> BeforeLLMResult:
        current_input = input
        running = new_context(context)

        with self._run_scope("before_llm", adapter_ids):
            self._logger.info("before_llm_started", adapters=list(adapter_ids))
            for adapter_id in adapter_ids:
                result = await self._client.call_adapter(adapter_id, current_input, running)
                self._raise_on_error(adapter_id, result, stage="before_llm")
                if result.output:
                    current_input = result.output
                merge_context(running, result.data)
            self._logger.info("before_llm_completed", adapters=len(adapter_ids))

        return BeforeLLMResult(prompt=current_input, context=running)

    async def run_after_llm(
        self,
        context: Mapping[str, Any],
        adapter_ids: Sequence[str],
    ) -> InvocationContext:
        running = new_context(context)

        with self._run_scope("after_llm", adapter_ids):
            self._logger.info("after_llm_started", adapters=list(adapter_ids))
            for adapter_id in adapter_ids:
                result = await self._client.call_adapter(adapter_id, None, running)
                self._raise_on_error(adapter_id, result, stage="after_llm")
                merge_context(running, result.data)
            self._logger.info("after_llm_completed", adapters=len(adapter_ids))

        return running

    # ── Parallel fan-out ─────────────────────────────────────────────

    async def run_parallel(
        self,
        input: str | None,
        adapter_ids: Sequence[str],
        context: Mapping[str, Any] | None = None,
    ) -> InvocationContext:
        ids = validate_adapter_ids(adapter_ids)
        initial = new_context(context)

        with self._run_scope("parallel", ids):
            self._logger.info("parallel_started", adapters=ids)
            outcomes = await asyncio.gather(
                *(self._client.call_adapter(adapter_id, input, initial) for adapter_id in ids),
                return_exceptions=True,
            )

            updates: list[dict[str, Any] | None] = []
            failures: list[tuple[str, str]] = []
            first_exc: BaseException | None = None
            for adapter_id, outcome in zip(ids, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    failures.append((adapter_id, str(outcome) or type(outcome).__name__))
                    first_exc = first_exc or outcome
                elif outcome.is_error:
                    failures.append((adapter_id, outcome.error or ""))
                else:
                    updates.append(outcome.data)
            merged = merge_all(new_context(initial), updates)

            if failures:
                adapter_id, error = failures[0]
                self._logger.error("parallel_failed", failed=[f[0] for f in failures])
                raise AdapterInvocationError(
                    adapter_id, error, stage="parallel", failures=failures
                ) from first_exc
            self._logger.info("parallel_completed", adapters=len(ids))

        return merged

    # ── Internal ─────────────────────────────────────────────────────

    @contextmanager
    def _run_scope(self, stage: str, adapter_ids: Sequence[str]) -> Iterator[None]:
        run_id = _new_run_id()
        with log_context(run_id=run_id), self._client.tracer.span(
            f"pipeline.{stage}",
            attributes={"pipeline.run_id": run_id, "pipeline.adapters": list(adapter_ids)},
        ):
            yield

    def _raise_on_error(self, adapter_id: str, result: InvocationResult, *, stage: str) -> None:
        if not result.is_error:
            return
        self._logger.error(f"{stage}_failed", adapter_id=adapter_id, error=result.error)
        raise AdapterInvocationError(adapter_id, result.error or "", stage=stage)

def _new_run_id() -> str:
    return uuid.uuid4().hex[:12]
