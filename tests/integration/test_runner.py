"""Integration tests for BenchmarkRunner scenarios."""

from __future__ import annotations

import logging
import time

import pytest

from sibench._internal.config import BenchmarkSettings
from sibench._internal.errors import ConfigError, EngineError, StoreError
from sibench._internal.logging import setup_logging
from sibench.engine import runner as runner_module
from sibench.engine.runner import BenchmarkRunner
from sibench.store.postgres import PostgresSessionFactory
from sibench.store.protocol import IsolationMode


@pytest.mark.timeout(30)
class TestBenchmarkRunner:
    def test_all_statements_succeed(self, make_factory):
        """Four workers, one update in four: no failures, mix converges."""
        settings = BenchmarkSettings(threads=4, queries_per_update=3, rows=10, seconds=1)
        runner = BenchmarkRunner(settings, session_factory=make_factory(), provision=False)

        report = runner.run()

        assert report.requested_workers == 4
        assert report.participating_workers == 4
        assert report.total_failures == 0
        assert report.total_transactions > 1000
        assert report.throughput == pytest.approx(report.total_transactions / 1)
        assert report.update_fraction == pytest.approx(0.25, abs=0.01)
        assert report.elapsed_seconds >= 1.0

    def test_rejected_updates_are_the_only_failures(self, make_factory):
        settings = BenchmarkSettings(threads=3, queries_per_update=2, seconds=1, ssi=True)
        factory = make_factory(fail_updates=True)
        report = BenchmarkRunner(settings, session_factory=factory, provision=False).run()

        assert report.isolation_mode is IsolationMode.SERIALIZABLE
        assert report.total_updates > 0
        assert report.total_failures == report.total_updates
        assert report.total_failures < report.total_transactions
        assert report.successful_throughput < report.throughput

    def test_totals_equal_sum_of_workers(self, make_factory):
        settings = BenchmarkSettings(threads=3, seconds=1)
        report = BenchmarkRunner(settings, session_factory=make_factory(), provision=False).run()

        assert report.total_transactions == sum(r.transactions for r in report.worker_results)
        assert report.total_failures == sum(r.failures for r in report.worker_results)
        assert report.total_failures <= report.total_transactions

    def test_zero_seconds_terminates_promptly(self, make_factory):
        settings = BenchmarkSettings(threads=1, seconds=0)
        started = time.monotonic()
        report = BenchmarkRunner(settings, session_factory=make_factory(), provision=False).run()

        assert time.monotonic() - started < 5.0
        assert report.total_transactions == 1
        assert report.throughput == 0.0

    def test_failed_session_excluded_from_report(self, make_factory):
        settings = BenchmarkSettings(threads=3, seconds=1)
        factory = make_factory(failing_opens=1)
        report = BenchmarkRunner(settings, session_factory=factory, provision=False).run()

        assert report.requested_workers == 3
        assert report.participating_workers == 2
        assert len(report.failed_workers) == 1
        assert report.total_transactions > 0

    def test_isolation_failure_on_every_worker(self, make_factory):
        settings = BenchmarkSettings(threads=2, seconds=1)
        factory = make_factory(fail_isolation=True)
        report = BenchmarkRunner(settings, session_factory=factory, provision=False).run()

        assert report.participating_workers == 0
        assert report.total_transactions == 0
        assert all(s.closed for s in factory.sessions)

    def test_invalid_settings_rejected(self, make_factory):
        with pytest.raises(ConfigError, match="rows must be >= 1"):
            BenchmarkRunner(BenchmarkSettings(rows=0), session_factory=make_factory())

    def test_provisions_before_running(self, make_factory, monkeypatch: pytest.MonkeyPatch):
        calls: list[tuple[str, str, int]] = []
        monkeypatch.setattr(
            runner_module,
            "provision_table",
            lambda conn_info, table, rows: calls.append((conn_info, table, rows)),
        )
        settings = BenchmarkSettings(conn_info="dbname=x", table="t", rows=5, threads=1, seconds=0)

        BenchmarkRunner(settings, session_factory=make_factory()).run()

        assert calls == [("dbname=x", "t", 5)]

    def test_provisioning_failure_is_fatal(self, make_factory, monkeypatch: pytest.MonkeyPatch):
        def _fail(conn_info: str, table: str, rows: int) -> None:
            raise StoreError("failed to connect: connection refused")

        monkeypatch.setattr(runner_module, "provision_table", _fail)
        factory = make_factory()
        runner = BenchmarkRunner(
            BenchmarkSettings(threads=2, seconds=0), session_factory=factory
        )

        with pytest.raises(EngineError, match="Failed to provision table 'sibench'"):
            runner.run()
        assert factory.sessions == []

    def test_default_session_factory(self):
        settings = BenchmarkSettings(conn_info="dbname=bench", table="t")
        runner = BenchmarkRunner(settings)
        assert runner.session_factory == PostgresSessionFactory(conn_info="dbname=bench", table="t")

    def test_worker_crash_keeps_issued_statements(self, make_factory):
        settings = BenchmarkSettings(threads=2, queries_per_update=1, seconds=5)
        factory = make_factory(crash_on_read=3)
        report = BenchmarkRunner(settings, session_factory=factory, provision=False).run()

        assert report.participating_workers == 2
        assert report.total_transactions == sum(len(s.statements) for s in factory.sessions)
        assert [r.transactions for r in report.worker_results] == [5, 4]
        assert all(r.error_message == "ValueError: driver bug" for r in report.worker_results)
        assert all(s.closed for s in factory.sessions)

    def test_start_up_log_reports_time_left(
        self,
        make_factory,
        caplog: pytest.LogCaptureFixture,
        monkeypatch: pytest.MonkeyPatch,
    ):
        setup_logging()
        monkeypatch.setattr(logging.getLogger("sibench"), "propagate", True)
        settings = BenchmarkSettings(threads=1, seconds=0)

        with caplog.at_level("INFO", logger="sibench"):
            BenchmarkRunner(settings, session_factory=make_factory(), provision=False).run()

        assert "Starting benchmark: workers=1" in caplog.text
        assert "stopping in 0.0s" in caplog.text
