"""Top-level benchmark orchestrator."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from sibench._internal.errors import EngineError, StoreError
from sibench._internal.logging import get_logger, setup_logging
from sibench.engine.coordinator import Coordinator
from sibench.engine.deadline import Deadline
from sibench.engine.protocol import WorkloadConfig
from sibench.metrics.aggregator import aggregate
from sibench.store.postgres import PostgresSessionFactory, provision_table

if TYPE_CHECKING:
    from sibench._internal.config import BenchmarkSettings
    from sibench.engine.coordinator import WorkerMode
    from sibench.metrics.models import Report
    from sibench.store.protocol import SessionFactory

logger = get_logger("engine.runner")


class BenchmarkRunner:
    """Runs one benchmark from settings to report.

    Provisions the table (optionally), fixes the deadline, launches the
    workers, waits for all of them and aggregates their counters.

    Attributes:
        settings: Validated benchmark settings.
        session_factory: Opens worker sessions.
    """

    def __init__(
        self,
        settings: BenchmarkSettings,
        *,
        session_factory: SessionFactory | None = None,
        mode: WorkerMode = "thread",
        provision: bool = True,
        log_level: int = 20,
    ) -> None:
        """Initialize the runner.

        Args:
            settings: Benchmark settings.
            session_factory: Session source. Defaults to a
                ``PostgresSessionFactory`` for ``settings.conn_info``.
            mode: Run workers as threads or spawned processes.
            provision: Drop, recreate and populate the table before running.
            log_level: Logging level.

        Raises:
            ConfigError: If the settings are out of range.
        """
        settings.validate()
        self.settings = settings
        self.session_factory: SessionFactory = session_factory or PostgresSessionFactory(
            conn_info=settings.conn_info,
            table=settings.table,
        )
        self._mode = mode
        self._provision = provision
        self._log_level = log_level

    def run(self) -> Report:
        """Execute the benchmark and return the report.

        Blocks for roughly ``settings.seconds`` plus the latency of each
        worker's last statement.

        Raises:
            EngineError: If provisioning fails or a worker cannot be launched.
        """
        setup_logging(level=self._log_level)
        settings = self.settings

        if self._provision:
            try:
                provision_table(settings.conn_info, settings.table, settings.rows)
            except StoreError as exc:
                msg = f"Failed to provision table {settings.table!r}: {exc}"
                raise EngineError(msg) from exc

        deadline = Deadline.after(settings.seconds)
        logger.info(
            "Starting benchmark: workers=%d, mode=%s, isolation=%s, rows=%d, "
            "queries_per_update=%d, duration=%ds, stopping in %.1fs",
            settings.threads,
            self._mode,
            settings.isolation_mode.value,
            settings.rows,
            settings.queries_per_update,
            settings.seconds,
            deadline.remaining(),
        )

        config = WorkloadConfig(
            session_factory=self.session_factory,
            rows=settings.rows,
            queries_per_update=settings.queries_per_update,
            isolation_mode=settings.isolation_mode,
            deadline=deadline,
            worker_count=settings.threads,
        )
        coordinator = Coordinator(config, mode=self._mode, log_level=self._log_level)

        start_time = time.monotonic()
        coordinator.start()
        results = coordinator.join()
        elapsed = time.monotonic() - start_time

        report = aggregate(
            results,
            duration_seconds=settings.seconds,
            isolation_mode=settings.isolation_mode,
            requested_workers=settings.threads,
            elapsed_seconds=elapsed,
        )

        logger.info(
            "Benchmark completed: elapsed=%.1fs, workers=%d/%d, transactions=%d, "
            "failures=%d, tps=%.1f",
            elapsed,
            report.participating_workers,
            report.requested_workers,
            report.total_transactions,
            report.total_failures,
            report.throughput,
        )
        return report
