"""Result collection helpers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from promptsandbox.core.models import GenerationResult


class ResultSummary(BaseModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    average_latency_ms: float | None = None


def aggregate(
    results: Iterable[GenerationResult],
) -> list[GenerationResult]:
    """Dispatch order is the result order; nothing is re-sorted or dropped."""
    return list(results)


def summarize(results: Sequence[GenerationResult]) -> ResultSummary:
    successes = [item for item in results if item.error_message is None]
    average = None
    if successes:
        average = sum(item.latency_ms for item in successes) / len(successes)
    return ResultSummary(
        total=len(results),
        succeeded=len(successes),
        failed=len(results) - len(successes),
        average_latency_ms=average,
    )
