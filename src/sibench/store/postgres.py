"""PostgreSQL sessions and table provisioning via psycopg 3."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import psycopg
from psycopg import sql

from sibench._internal.errors import StoreError
from sibench._internal.logging import get_logger

if TYPE_CHECKING:
    from sibench.store.protocol import IsolationMode

logger = get_logger("store.postgres")

_SET_ISOLATION = sql.SQL("SET default_transaction_isolation TO {}")
_UPDATE_ROW = sql.SQL("UPDATE {} SET i = i WHERE i = %s")
_READ_ALL = sql.SQL("SELECT * FROM {}")


def _store_error(action: str, exc: psycopg.Error) -> StoreError:
    message = f"{action}: {str(exc).strip() or type(exc).__name__}"
    return StoreError(message, sqlstate=getattr(exc, "sqlstate", None))


class PostgresSession:
    """A single autocommit connection driving the benchmark statements.

    Autocommit makes every statement its own implicit transaction, run at
    the session's ``default_transaction_isolation``.
    """

    def __init__(self, conn: psycopg.Connection, table: str) -> None:
        self._conn = conn
        self._table = sql.Identifier(table)
        self._update = _UPDATE_ROW.format(self._table)
        self._read = _READ_ALL.format(self._table)

    def set_isolation(self, mode: IsolationMode) -> None:
        try:
            self._conn.execute(_SET_ISOLATION.format(sql.Literal(mode.value)))
        except psycopg.Error as exc:
            raise _store_error("failed to set isolation level", exc) from exc

    def update_row(self, key: int) -> None:
        try:
            self._conn.execute(self._update, (key,))
        except psycopg.Error as exc:
            raise _store_error("update failed", exc) from exc

    def read_all(self) -> None:
        try:
            self._conn.execute(self._read).fetchall()
        except psycopg.Error as exc:
            raise _store_error("read failed", exc) from exc

    def close(self) -> None:
        if not self._conn.closed:
            self._conn.close()


@dataclass(frozen=True)
class PostgresSessionFactory:
    """Opens ``PostgresSession`` objects for one connection string.

    Frozen and picklable, so the same factory can be handed to spawned
    worker processes.

    Attributes:
        conn_info: libpq connection string.
        table: Benchmark table name.
        connect_timeout: Optional connect timeout in seconds.
    """

    conn_info: str
    table: str = "sibench"
    connect_timeout: int | None = None

    def open(self) -> PostgresSession:
        """Connect and wrap the connection.

        Raises:
            StoreError: If the connection cannot be established.
        """
        kwargs: dict[str, object] = {"autocommit": True}
        if self.connect_timeout is not None:
            kwargs["connect_timeout"] = self.connect_timeout
        try:
            conn = psycopg.connect(self.conn_info, **kwargs)
        except psycopg.Error as exc:
            raise _store_error("failed to connect", exc) from exc
        return PostgresSession(conn, self.table)


def provision_table(conn_info: str, table: str, rows: int) -> None:
    """(Re)create the benchmark table holding keys ``1..rows``.

    Drops any existing table of the same name, creates
    ``<table> (i int primary key)``, populates it and runs ``ANALYZE``.

    Raises:
        StoreError: If any step fails.
    """
    ident = sql.Identifier(table)
    steps = [
        ("drop table", sql.SQL("DROP TABLE IF EXISTS {}").format(ident), None),
        ("create table", sql.SQL("CREATE TABLE {} (i int PRIMARY KEY)").format(ident), None),
        (
            "populate table",
            sql.SQL("INSERT INTO {} SELECT generate_series(1, %s::int)").format(ident),
            (rows,),
        ),
        ("analyze table", sql.SQL("ANALYZE {}").format(ident), None),
    ]

    try:
        conn = psycopg.connect(conn_info, autocommit=True)
    except psycopg.Error as exc:
        raise _store_error("failed to connect", exc) from exc

    with conn:
        for action, statement, params in steps:
            try:
                conn.execute(statement, params)
            except psycopg.Error as exc:
                raise _store_error(f"failed to {action} {table!r}", exc) from exc

    logger.info("Provisioned table %s with %d rows", table, rows)
