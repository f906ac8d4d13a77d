"""Shared test fixtures for the sibench test suite."""

from __future__ import annotations

import itertools
import os
import threading
from typing import TYPE_CHECKING

import pytest

from sibench._internal.errors import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sibench.store.protocol import IsolationMode


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# In-memory data store
# =============================================================================


class FakeSession:
    """Session double that records what it was asked to do."""

    def __init__(
        self,
        *,
        fail_updates: bool = False,
        fail_reads: bool = False,
        fail_isolation: bool = False,
        crash_on_read: int | None = None,
    ) -> None:
        self.fail_updates = fail_updates
        self.fail_reads = fail_reads
        self.fail_isolation = fail_isolation
        self.crash_on_read = crash_on_read
        self.reads = 0
        self.isolation: IsolationMode | None = None
        self.updated_keys: list[int] = []
        self.statements: list[str] = []
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def set_isolation(self, mode: IsolationMode) -> None:
        if self.fail_isolation:
            raise StoreError("permission denied to set isolation", sqlstate="42501")
        self.isolation = mode

    def update_row(self, key: int) -> None:
        self.statements.append("update")
        self.updated_keys.append(key)
        if self.fail_updates:
            raise StoreError(
                "could not serialize access due to concurrent update",
                sqlstate="40001",
            )

    def read_all(self) -> None:
        self.reads += 1
        if self.reads == self.crash_on_read:
            raise ValueError("driver bug")
        self.statements.append("read")
        if self.fail_reads:
            raise StoreError("relation does not exist", sqlstate="42P01")

    def close(self) -> None:
        self.close_calls += 1


class FakeSessionFactory:
    """Factory double; the first ``failing_opens`` calls to ``open`` fail."""

    def __init__(self, *, failing_opens: int = 0, **session_kwargs: object) -> None:
        self.failing_opens = failing_opens
        self.session_kwargs = session_kwargs
        self.sessions: list[FakeSession] = []
        self._opens = itertools.count()
        self._lock = threading.Lock()

    def open(self) -> FakeSession:
        with self._lock:
            if next(self._opens) < self.failing_opens:
                raise StoreError("connection refused", sqlstate="08001")
            session = FakeSession(**self.session_kwargs)
            self.sessions.append(session)
            return session


class StepClock:
    """Clock returning ``start``, ``start + step``, ... on successive calls."""

    def __init__(self, start: float = 1.0, step: float = 1.0) -> None:
        self._values = itertools.count(start, step)
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        return next(self._values)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_factory() -> Callable[..., FakeSessionFactory]:
    """Build ``FakeSessionFactory`` instances."""
    return FakeSessionFactory


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    """Build ``FakeSession`` instances."""
    return FakeSession


@pytest.fixture
def step_clock() -> StepClock:
    """A deterministic clock advancing one second per reading."""
    return StepClock()


@pytest.fixture
def postgres_dsn() -> str:
    """Connection string of a disposable PostgreSQL database.

    Tests using this fixture are skipped unless ``SIBENCH_TEST_DSN`` is set.
    """
    dsn = os.environ.get("SIBENCH_TEST_DSN")
    if not dsn:
        pytest.skip("SIBENCH_TEST_DSN not set")
    return dsn


@pytest.fixture(autouse=True)
def _clear_sibench_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SIBENCH_* settings from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("SIBENCH_") and name != "SIBENCH_TEST_DSN":
            monkeypatch.delenv(name, raising=False)
