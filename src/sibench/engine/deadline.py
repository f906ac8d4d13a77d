"""The shared, precomputed end-of-run instant."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class Deadline:
    """Absolute wall-clock instant at which every worker stops.

    Computed once before workers launch and shared read-only; each worker
    compares its own reading of the clock against it. Wall-clock time
    (``time.time``) is used so the instant means the same thing in spawned
    worker processes.

    Attributes:
        at: Seconds since the epoch.
    """

    at: float

    @classmethod
    def after(
        cls,
        seconds: float,
        *,
        clock: Callable[[], float] = time.time,
    ) -> Deadline:
        """Return the deadline ``seconds`` from now."""
        return cls(at=clock() + seconds)

    def reached(self, now: float | None = None) -> bool:
        """Return True if ``now`` (default: the current time) is at or past the deadline."""
        if now is None:
            now = time.time()
        return now >= self.at

    def remaining(self, now: float | None = None) -> float:
        """Seconds left before the deadline, never negative."""
        if now is None:
            now = time.time()
        return max(0.0, self.at - now)
