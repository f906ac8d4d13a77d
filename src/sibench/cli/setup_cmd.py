"""``sibench setup`` — create and populate the benchmark table."""

from __future__ import annotations

import typer
from rich.console import Console

from sibench._internal.config import load_config
from sibench._internal.errors import SibenchError
from sibench._internal.logging import setup_logging
from sibench.store.postgres import provision_table

console = Console(stderr=True)


def setup_cmd(
    conn_info: str | None = typer.Option(
        None,
        "--conn-info",
        "-c",
        help="libpq connection string [env: SIBENCH_CONN_INFO].",
    ),
    rows: int | None = typer.Option(
        None,
        "--rows",
        "-r",
        help="Number of rows to insert (default: 10).",
    ),
    table: str | None = typer.Option(
        None,
        "--table",
        help="Benchmark table name (default: sibench).",
    ),
) -> None:
    """Drop, recreate, populate and analyze the benchmark table."""
    setup_logging()
    try:
        settings = load_config().with_overrides(conn_info=conn_info, rows=rows, table=table)
        settings.validate()
        provision_table(settings.conn_info, settings.table, settings.rows)
    except SibenchError as exc:
        console.print(f"[red]Setup failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        f"[green]Created table[/green] {settings.table} with {settings.rows} rows"
    )
