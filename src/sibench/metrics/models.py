"""Benchmark report model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sibench.engine.protocol import WorkerResult
    from sibench.store.protocol import IsolationMode


@dataclass(frozen=True)
class Report:
    """Aggregate result of one benchmark run.

    ``throughput`` counts *attempted* statements per configured second:
    failed statements are included, so under heavy serialization failures
    it overstates useful work. ``successful_throughput`` excludes them.

    Attributes:
        requested_workers: Workers the run was configured with.
        participating_workers: Workers that got a session and ran.
        total_transactions: Statements attempted across all workers.
        total_failures: Statements that did not complete successfully.
        total_updates: Update statements attempted.
        duration_seconds: Configured run duration; the throughput divisor.
        elapsed_seconds: Measured time from launch to join, for reference.
        isolation_mode: Isolation the sessions ran under.
        worker_results: Per-worker outcomes, ordered by worker id.
    """

    requested_workers: int
    participating_workers: int
    total_transactions: int
    total_failures: int
    total_updates: int
    duration_seconds: float
    elapsed_seconds: float
    isolation_mode: IsolationMode
    worker_results: tuple[WorkerResult, ...] = field(default_factory=tuple)

    @property
    def successful_transactions(self) -> int:
        return self.total_transactions - self.total_failures

    @property
    def throughput(self) -> float:
        """Attempted statements per second of configured duration."""
        if self.duration_seconds <= 0:
            return 0.0
        return self.total_transactions / self.duration_seconds

    @property
    def successful_throughput(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.successful_transactions / self.duration_seconds

    @property
    def failure_rate(self) -> float:
        if self.total_transactions == 0:
            return 0.0
        return self.total_failures / self.total_transactions

    @property
    def update_fraction(self) -> float:
        if self.total_transactions == 0:
            return 0.0
        return self.total_updates / self.total_transactions

    @property
    def failed_workers(self) -> list[WorkerResult]:
        return [r for r in self.worker_results if not r.started]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary."""
        return {
            "isolation_mode": self.isolation_mode.value,
            "requested_workers": self.requested_workers,
            "participating_workers": self.participating_workers,
            "duration_seconds": self.duration_seconds,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "total_transactions": self.total_transactions,
            "successful_transactions": self.successful_transactions,
            "total_failures": self.total_failures,
            "total_updates": self.total_updates,
            "throughput": self.throughput,
            "successful_throughput": self.successful_throughput,
            "failure_rate": self.failure_rate,
            "workers": [
                {
                    "worker_id": r.worker_id,
                    "started": r.started,
                    "transactions": r.transactions,
                    "failures": r.failures,
                    "updates": r.updates,
                    "error": r.error_message,
                }
                for r in self.worker_results
            ],
        }
