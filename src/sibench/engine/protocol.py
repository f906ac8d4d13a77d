"""Records passed between the coordinator and its workers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sibench.workload.mix import cycle_length_for

if TYPE_CHECKING:
    from sibench.engine.deadline import Deadline
    from sibench.store.protocol import IsolationMode, SessionFactory


@dataclass(frozen=True)
class WorkloadConfig:
    """Immutable run configuration, shared by every worker.

    Attributes:
        session_factory: Opens one session per worker.
        rows: Number of rows in the benchmark table.
        queries_per_update: Reads between consecutive updates of a worker.
        isolation_mode: Isolation each session is configured with.
        deadline: Instant at which workers stop.
        worker_count: Number of workers to launch.
    """

    session_factory: SessionFactory
    rows: int
    queries_per_update: int
    isolation_mode: IsolationMode
    deadline: Deadline
    worker_count: int

    @property
    def cycle_length(self) -> int:
        return cycle_length_for(self.queries_per_update)


@dataclass(frozen=True)
class WorkerResult:
    """Final counters of one worker, produced after it stops.

    Attributes:
        worker_id: Identity of the worker.
        transactions: Statements attempted, failed ones included.
        failures: Statements that did not complete successfully.
        updates: Update statements attempted.
        started: False if the worker never got a configured session.
        error_message: Why the worker failed, if it did. A started worker
            with an error stopped early; its counters cover the statements
            it issued before stopping.
    """

    worker_id: int
    transactions: int = 0
    failures: int = 0
    updates: int = 0
    started: bool = True
    error_message: str | None = None

    @classmethod
    def failed(cls, worker_id: int, reason: str) -> WorkerResult:
        return cls(worker_id=worker_id, started=False, error_message=reason)
