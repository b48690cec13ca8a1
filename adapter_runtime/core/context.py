"""Invocation context helpers.

A pipeline run owns one context mapping. Adapters never write to it directly;
they return partial updates which the pipeline folds in with ``merge_context``.
"""

from collections.abc import Iterable, Mapping
from typing import Any

InvocationContext = dict[str, Any]

# Context flag marking a liveness probe rather than a functional call.
HEALTH_CHECK_FLAG = "healthCheck"


def new_context(initial: Mapping[str, Any] | None = None) -> InvocationContext:
    """Start a run-owned context from a caller-supplied mapping (copied)."""
    return dict(initial or {})


def snapshot(context: Mapping[str, Any] | None) -> InvocationContext:
    """Shallow copy handed to a single adapter call."""
    return dict(context or {})


def merge_context(
    accumulator: InvocationContext, update: Mapping[str, Any] | None
) -> InvocationContext:
    """Merge a partial update into ``accumulator`` in place, last write wins."""
    if update:
        for key, value in update.items():
            accumulator[key] = value
    return accumulator


def merge_all(
    accumulator: InvocationContext, updates: Iterable[Mapping[str, Any] | None]
) -> InvocationContext:
    """Apply updates in iteration order; later updates win on shared keys."""
    for update in updates:
        merge_context(accumulator, update)
    return accumulator
