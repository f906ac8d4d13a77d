"""Fold per-worker counters into a single ``Report``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sibench._internal.logging import get_logger
from sibench.metrics.models import Report

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sibench.engine.protocol import WorkerResult
    from sibench.store.protocol import IsolationMode

logger = get_logger("metrics.aggregator")


def aggregate(
    results: Sequence[WorkerResult],
    *,
    duration_seconds: float,
    isolation_mode: IsolationMode,
    requested_workers: int | None = None,
    elapsed_seconds: float = 0.0,
) -> Report:
    """Sum worker counters into a report.

    Must only be called once every worker has stopped; the results are
    read without any synchronization.

    Args:
        results: Final result of every launched worker.
        duration_seconds: Configured run duration (throughput divisor).
        isolation_mode: Isolation the run used.
        requested_workers: Configured worker count. Defaults to
            ``len(results)``.
        elapsed_seconds: Measured run time, reported for reference only.

    Returns:
        The aggregate report.
    """
    ordered = tuple(sorted(results, key=lambda r: r.worker_id))
    participating = [r for r in ordered if r.started]

    for r in ordered:
        if not r.started:
            logger.warning("Worker %d did not participate: %s", r.worker_id, r.error_message)
        elif r.error_message is not None:
            logger.warning("Worker %d stopped early: %s", r.worker_id, r.error_message)

    return Report(
        requested_workers=len(ordered) if requested_workers is None else requested_workers,
        participating_workers=len(participating),
        total_transactions=sum(r.transactions for r in ordered),
        total_failures=sum(r.failures for r in ordered),
        total_updates=sum(r.updates for r in ordered),
        duration_seconds=duration_seconds,
        elapsed_seconds=elapsed_seconds,
        isolation_mode=isolation_mode,
        worker_results=ordered,
    )
