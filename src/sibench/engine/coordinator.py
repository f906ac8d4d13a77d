"""Fork-join driver: launch N workers, wait for all, collect their results."""

from __future__ import annotations

import multiprocessing
import multiprocessing.process
import queue
import threading
from typing import TYPE_CHECKING, Literal

from sibench._internal.errors import EngineError
from sibench._internal.logging import get_logger
from sibench.engine.protocol import WorkerResult
from sibench.engine.worker import execute_worker, run_worker_process

if TYPE_CHECKING:
    from multiprocessing import Queue as MpQueue

    from sibench.engine.protocol import WorkloadConfig

logger = get_logger("engine.coordinator")

WorkerMode = Literal["thread", "process"]


class Coordinator:
    """Manages the lifecycle of N concurrent workers.

    Workers run either as threads in this process or as spawned processes.
    They share nothing mutable: a thread worker writes its result into a
    slot of its own, and a process worker sends its result over a queue of
    its own. Results are read only after ``join`` has seen every worker
    exit.

    Attributes:
        config: Shared run configuration.
        mode: ``"thread"`` or ``"process"``.
    """

    thread_class: type[threading.Thread] = threading.Thread

    def __init__(
        self,
        config: WorkloadConfig,
        *,
        mode: WorkerMode = "thread",
        log_level: int = 20,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Shared run configuration; ``config.worker_count`` workers
                are launched.
            mode: Run workers as threads or as spawned processes.
            log_level: Logging level for spawned worker processes.

        Raises:
            EngineError: If ``mode`` is not recognised.
        """
        if mode not in ("thread", "process"):
            msg = f"Unknown worker mode: {mode!r}. Choose from: thread, process"
            raise EngineError(msg)

        self.config = config
        self.mode = mode
        self._log_level = log_level

        self._threads: list[threading.Thread] = []
        self._slots: list[WorkerResult | None] = [None] * config.worker_count

        self._ctx = multiprocessing.get_context("spawn")
        self._processes: list[multiprocessing.process.BaseProcess] = []
        self._result_queues: list[MpQueue[WorkerResult]] = []

    @property
    def is_alive(self) -> bool:
        """Return True if any worker is still running."""
        return any(t.is_alive() for t in self._threads) or any(
            p.is_alive() for p in self._processes
        )

    def start(self) -> None:
        """Launch every worker.

        Raises:
            EngineError: If any worker fails to launch. Launching stops at
                the first failure and the run must not continue
                short-handed. Already-started processes are terminated.
                Threads cannot be interrupted, so already-started thread
                workers are joined first: in thread mode this call returns
                only once they reach the deadline and close their sessions.
        """
        for worker_id in range(self.config.worker_count):
            try:
                if self.mode == "thread":
                    self._start_thread(worker_id)
                else:
                    self._start_process(worker_id)
            except (RuntimeError, OSError) as exc:
                logger.error("Failed to launch worker %d: %s", worker_id, exc)
                self._abort()
                msg = f"Failed to launch worker {worker_id}: {exc}"
                raise EngineError(msg) from exc

        logger.info("Started %d %s workers", self.config.worker_count, self.mode)

    def _start_thread(self, worker_id: int) -> None:
        def _target() -> None:
            self._slots[worker_id] = execute_worker(self.config, worker_id)

        thread = self.thread_class(
            target=_target,
            name=f"sibench-worker-{worker_id}",
            daemon=True,
        )
        thread.start()
        self._threads.append(thread)

    def _start_process(self, worker_id: int) -> None:
        result_q: MpQueue[WorkerResult] = self._ctx.Queue()
        process = self._ctx.Process(
            target=run_worker_process,
            args=(self.config, worker_id, result_q, self._log_level),
            name=f"sibench-worker-{worker_id}",
            daemon=False,
        )
        process.start()
        self._result_queues.append(result_q)
        self._processes.append(process)
        logger.debug("Started worker process: pid=%d, name=%s", process.pid or 0, process.name)

    def _abort(self) -> None:
        for t in self._threads:
            t.join()
        for p in self._processes:
            if p.is_alive():
                p.terminate()
            p.join(timeout=2.0)
        for q in self._result_queues:
            q.close()

    def join(self) -> list[WorkerResult]:
        """Block until every worker has exited, then return their results.

        Returns:
            One ``WorkerResult`` per launched worker, ordered by worker id.
        """
        if self.mode == "thread":
            results = self._join_threads()
        else:
            results = self._join_processes()
        logger.info("All %d workers stopped", len(results))
        return results

    def _join_threads(self) -> list[WorkerResult]:
        for t in self._threads:
            t.join()

        results: list[WorkerResult] = []
        for worker_id in range(len(self._threads)):
            result = self._slots[worker_id]
            if result is None:
                result = WorkerResult.failed(worker_id, "No result received")
            results.append(result)
        return results

    def _join_processes(self) -> list[WorkerResult]:
        for p in self._processes:
            p.join()

        results: list[WorkerResult] = []
        for worker_id, result_q in enumerate(self._result_queues):
            try:
                results.append(result_q.get(timeout=2.0))
            except queue.Empty:
                logger.warning("No result from worker %d", worker_id)
                results.append(WorkerResult.failed(worker_id, "No result received"))
            result_q.close()
        return results
