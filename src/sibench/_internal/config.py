"""Benchmark settings and environment-variable loading."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass

from sibench._internal.errors import ConfigError
from sibench.store.protocol import IsolationMode

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class BenchmarkSettings:
    """Everything needed to describe one benchmark run.

    Attributes:
        conn_info: libpq connection string for the target database.
        queries_per_update: Reads issued between consecutive updates of a
            worker. Zero makes every statement an update.
        rows: Number of rows in the benchmark table (keys ``1..rows``).
        seconds: Run duration in seconds.
        threads: Number of concurrent workers.
        ssi: Run under SERIALIZABLE instead of REPEATABLE READ.
        table: Name of the benchmark table.
    """

    conn_info: str = "dbname=postgres"
    queries_per_update: int = 1
    rows: int = 10
    seconds: int = 60
    threads: int = 2
    ssi: bool = False
    table: str = "sibench"

    @property
    def isolation_mode(self) -> IsolationMode:
        return IsolationMode.from_ssi(self.ssi)

    @property
    def cycle_length(self) -> int:
        return self.queries_per_update + 1

    def with_overrides(self, **overrides: object) -> BenchmarkSettings:
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)  # type: ignore[arg-type]

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigError: If any setting is out of range.
        """
        if self.rows < 1:
            msg = f"rows must be >= 1, got: {self.rows}"
            raise ConfigError(msg)
        if self.queries_per_update < 0:
            msg = f"queries_per_update must be >= 0, got: {self.queries_per_update}"
            raise ConfigError(msg)
        if self.seconds < 0:
            msg = f"seconds must be >= 0, got: {self.seconds}"
            raise ConfigError(msg)
        if self.threads < 1:
            msg = f"threads must be >= 1, got: {self.threads}"
            raise ConfigError(msg)
        if not self.table:
            msg = "table must not be empty"
            raise ConfigError(msg)


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None


def _bool_from_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    msg = f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got: {raw!r}"
    raise ConfigError(msg)


def load_config() -> BenchmarkSettings:
    """Load settings from environment variables with defaults.

    Environment variables:
        SIBENCH_CONN_INFO: Connection string (default: ``dbname=postgres``).
        SIBENCH_QUERIES_PER_UPDATE: Reads per update (default: 1).
        SIBENCH_ROWS: Table size (default: 10).
        SIBENCH_SECONDS: Run duration (default: 60).
        SIBENCH_THREADS: Worker count (default: 2).
        SIBENCH_SSI: Use SERIALIZABLE (default: false).
        SIBENCH_TABLE: Table name (default: ``sibench``).

    Values are parsed but not range-checked; call
    ``BenchmarkSettings.validate`` once all overrides are applied.

    Raises:
        ConfigError: If a variable cannot be parsed.
    """
    defaults = BenchmarkSettings()
    return BenchmarkSettings(
        conn_info=os.environ.get("SIBENCH_CONN_INFO", defaults.conn_info),
        queries_per_update=_int_from_env(
            "SIBENCH_QUERIES_PER_UPDATE", defaults.queries_per_update
        ),
        rows=_int_from_env("SIBENCH_ROWS", defaults.rows),
        seconds=_int_from_env("SIBENCH_SECONDS", defaults.seconds),
        threads=_int_from_env("SIBENCH_THREADS", defaults.threads),
        ssi=_bool_from_env("SIBENCH_SSI", defaults.ssi),
        table=os.environ.get("SIBENCH_TABLE", defaults.table),
    )
