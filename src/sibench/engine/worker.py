"""Worker execution loop, run once per thread or spawned process."""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from sibench._internal.errors import StoreError
from sibench._internal.logging import get_logger, setup_logging
from sibench.engine.protocol import WorkerResult
from sibench.workload.mix import StatementKind, WorkloadMix

if TYPE_CHECKING:
    from collections.abc import Callable
    from multiprocessing import Queue as MpQueue

    from sibench.engine.deadline import Deadline
    from sibench.engine.protocol import WorkloadConfig
    from sibench.store.protocol import Session

logger = get_logger("engine.worker")


@dataclass
class WorkerContext:
    """Mutable state owned by a single worker.

    Nothing outside the worker touches these counters until it has stopped.
    """

    worker_id: int
    mix: WorkloadMix
    transactions: int = 0
    failures: int = 0
    updates: int = 0

    def to_result(self) -> WorkerResult:
        return WorkerResult(
            worker_id=self.worker_id,
            transactions=self.transactions,
            failures=self.failures,
            updates=self.updates,
        )


def run_worker(
    config: WorkloadConfig,
    worker_id: int,
    *,
    clock: Callable[[], float] = time.time,
) -> WorkerResult:
    """Open a session and issue statements until the deadline.

    A worker that cannot connect or cannot set its isolation level stops
    immediately with a failed result and zero counters; the rest of the
    run is unaffected. An unexpected error part way through the loop stops
    the worker early, but the statements it already issued are kept in the
    result alongside the error. The session is closed on every exit path.

    Args:
        config: Shared run configuration.
        worker_id: This worker's identity (phase offset and RNG seed).
        clock: Wall-clock source compared against the deadline.

    Returns:
        The worker's final counters.
    """
    context = WorkerContext(
        worker_id=worker_id,
        mix=WorkloadMix(worker_id, config.cycle_length, config.rows),
    )

    try:
        session = config.session_factory.open()
    except StoreError as exc:
        logger.error("Worker %d failed to connect: %s", worker_id, exc)
        return WorkerResult.failed(worker_id, str(exc))

    with contextlib.closing(session):
        try:
            session.set_isolation(config.isolation_mode)
        except StoreError as exc:
            logger.error("Worker %d failed to set isolation level: %s", worker_id, exc)
            return WorkerResult.failed(worker_id, str(exc))

        logger.debug(
            "Worker %d started: isolation=%s, cycle_length=%d",
            worker_id,
            config.isolation_mode.value,
            config.cycle_length,
        )
        try:
            _run_loop(context, session, config.deadline, clock)
        except Exception as exc:
            logger.exception(
                "Worker %d: stopped after %d statements", worker_id, context.transactions
            )
            return replace(
                context.to_result(),
                error_message=f"{type(exc).__name__}: {exc}",
            )

    logger.debug(
        "Worker %d finished: transactions=%d, failures=%d",
        worker_id,
        context.transactions,
        context.failures,
    )
    return context.to_result()


def _run_loop(
    context: WorkerContext,
    session: Session,
    deadline: Deadline,
    clock: Callable[[], float],
) -> None:
    # Deadline is checked after each statement, so a started worker always
    # issues at least one.
    while True:
        kind = context.mix.next_statement()
        try:
            if kind is StatementKind.UPDATE:
                session.update_row(context.mix.next_key())
            else:
                session.read_all()
        except StoreError as exc:
            context.failures += 1
            logger.debug(
                "Worker %d: %s failed (sqlstate=%s): %s",
                context.worker_id,
                kind.name.lower(),
                exc.sqlstate,
                exc,
            )
        if kind is StatementKind.UPDATE:
            context.updates += 1
        context.transactions += 1

        if deadline.reached(clock()):
            break


def execute_worker(
    config: WorkloadConfig,
    worker_id: int,
    *,
    clock: Callable[[], float] = time.time,
) -> WorkerResult:
    """Run a worker, turning an unexpected error outside its loop into a failed result."""
    try:
        return run_worker(config, worker_id, clock=clock)
    except Exception as exc:
        logger.exception("Worker %d: failed", worker_id)
        return WorkerResult.failed(worker_id, f"{type(exc).__name__}: {exc}")


def run_worker_process(
    config: WorkloadConfig,
    worker_id: int,
    result_queue: MpQueue[WorkerResult],
    log_level: int = 20,
) -> None:
    """Entry point for a spawned worker process.

    Always puts exactly one ``WorkerResult`` on ``result_queue``.

    Args:
        config: Shared run configuration (pickled into the child).
        worker_id: This worker's identity.
        result_queue: Queue read by the coordinator after the process exits.
        log_level: Logging level for this process.
    """
    setup_logging(level=log_level)

    result = WorkerResult.failed(worker_id, "Interrupted")
    try:
        result = execute_worker(config, worker_id)
    except KeyboardInterrupt:
        logger.info("Worker %d: KeyboardInterrupt, shutting down", worker_id)
    finally:
        result_queue.put(result)
