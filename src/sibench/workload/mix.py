"""Per-worker statement mix: which statement to run next, and on which row."""

from __future__ import annotations

import random
from enum import Enum, auto

from sibench._internal.errors import ConfigError


class StatementKind(Enum):
    """The two statements a worker issues."""

    UPDATE = auto()
    READ = auto()


def cycle_length_for(queries_per_update: int) -> int:
    """Number of iterations between consecutive updates, inclusive."""
    return queries_per_update + 1


class WorkloadMix:
    """Deterministic update/read sequence for one worker.

    The iteration counter starts at the worker id, so workers enter the
    cycle at different phases and their updates are staggered rather than
    issued in lockstep. Every ``cycle_length``-th iteration is an update.

    Update targets are drawn uniformly from ``[1, rows]`` by a generator
    seeded with the worker id: a given worker always produces the same key
    sequence, and different workers produce different ones.

    Attributes:
        worker_id: Identity of the owning worker.
        cycle_length: Iterations per update; 1 means every iteration updates.
        rows: Number of keys in the table.
        iteration: Counter consulted by the next call to ``next_statement``.
    """

    def __init__(self, worker_id: int, cycle_length: int, rows: int) -> None:
        if cycle_length < 1:
            msg = f"cycle_length must be >= 1, got: {cycle_length}"
            raise ConfigError(msg)
        if rows < 1:
            msg = f"rows must be >= 1, got: {rows}"
            raise ConfigError(msg)
        self.worker_id = worker_id
        self.cycle_length = cycle_length
        self.rows = rows
        self.iteration = worker_id
        self._rng = random.Random(worker_id)  # noqa: S311

    def next_statement(self) -> StatementKind:
        """Return the kind of the next statement and advance the counter."""
        is_update = self.iteration % self.cycle_length == 0
        self.iteration += 1
        return StatementKind.UPDATE if is_update else StatementKind.READ

    def next_key(self) -> int:
        """Return the key for the next update, uniform on ``[1, rows]``."""
        return self._rng.randint(1, self.rows)
