"""Tests for result aggregation and the Report model."""

from __future__ import annotations

import json

from sibench.engine.protocol import WorkerResult
from sibench.metrics.aggregator import aggregate
from sibench.store.protocol import IsolationMode


def _result(worker_id: int, transactions: int, failures: int = 0, updates: int = 0) -> WorkerResult:
    return WorkerResult(
        worker_id=worker_id,
        transactions=transactions,
        failures=failures,
        updates=updates,
    )


class TestAggregate:
    def test_sums_counters(self):
        report = aggregate(
            [_result(0, 100, 3, 50), _result(1, 80, 2, 40)],
            duration_seconds=10,
            isolation_mode=IsolationMode.SERIALIZABLE,
        )
        assert report.total_transactions == 180
        assert report.total_failures == 5
        assert report.total_updates == 90
        assert report.successful_transactions == 175
        assert report.requested_workers == 2
        assert report.participating_workers == 2

    def test_throughput_uses_configured_duration(self):
        report = aggregate(
            [_result(0, 100, 20)],
            duration_seconds=4,
            isolation_mode=IsolationMode.REPEATABLE_READ,
            elapsed_seconds=4.7,
        )
        assert report.throughput == 25.0
        assert report.successful_throughput == 20.0
        assert report.elapsed_seconds == 4.7

    def test_zero_duration_throughput(self):
        report = aggregate(
            [_result(0, 1)],
            duration_seconds=0,
            isolation_mode=IsolationMode.REPEATABLE_READ,
        )
        assert report.throughput == 0.0
        assert report.successful_throughput == 0.0

    def test_failed_workers_reported(self):
        report = aggregate(
            [_result(0, 10), WorkerResult.failed(1, "connection refused"), _result(2, 5)],
            duration_seconds=1,
            isolation_mode=IsolationMode.REPEATABLE_READ,
            requested_workers=3,
        )
        assert report.requested_workers == 3
        assert report.participating_workers == 2
        assert report.total_transactions == 15
        assert [r.worker_id for r in report.failed_workers] == [1]

    def test_worker_stopped_early_still_counted(self):
        stopped = WorkerResult(
            worker_id=1,
            transactions=5,
            updates=3,
            error_message="ValueError: driver bug",
        )
        report = aggregate(
            [_result(0, 10), stopped],
            duration_seconds=1,
            isolation_mode=IsolationMode.SERIALIZABLE,
        )
        assert report.participating_workers == 2
        assert report.total_transactions == 15
        assert report.total_updates == 3
        assert report.failed_workers == []

    def test_results_ordered_by_worker_id(self):
        report = aggregate(
            [_result(2, 1), _result(0, 1), _result(1, 1)],
            duration_seconds=1,
            isolation_mode=IsolationMode.REPEATABLE_READ,
        )
        assert [r.worker_id for r in report.worker_results] == [0, 1, 2]

    def test_rates(self):
        report = aggregate(
            [_result(0, 40, 10, 10)],
            duration_seconds=1,
            isolation_mode=IsolationMode.SERIALIZABLE,
        )
        assert report.failure_rate == 0.25
        assert report.update_fraction == 0.25

    def test_empty_run_rates(self):
        report = aggregate(
            [],
            duration_seconds=1,
            isolation_mode=IsolationMode.SERIALIZABLE,
        )
        assert report.failure_rate == 0.0
        assert report.update_fraction == 0.0
        assert report.participating_workers == 0

    def test_to_dict_is_json_serialisable(self):
        report = aggregate(
            [_result(0, 10, 1, 5), WorkerResult.failed(1, "boom")],
            duration_seconds=2,
            isolation_mode=IsolationMode.SERIALIZABLE,
        )
        data = json.loads(json.dumps(report.to_dict()))
        assert data["isolation_mode"] == "serializable"
        assert data["throughput"] == 5.0
        assert data["successful_throughput"] == 4.5
        assert data["participating_workers"] == 1
        assert data["workers"][1] == {
            "worker_id": 1,
            "started": False,
            "transactions": 0,
            "failures": 0,
            "updates": 0,
            "error": "boom",
        }
