"""``sibench run`` — run the benchmark and print a summary."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sibench._internal.config import load_config
from sibench._internal.errors import SibenchError
from sibench.engine.runner import BenchmarkRunner

if TYPE_CHECKING:
    from sibench._internal.config import BenchmarkSettings
    from sibench.metrics.models import Report

console = Console(stderr=True)

_MODES = ("thread", "process")


def _print_settings(settings: BenchmarkSettings, mode: str) -> None:
    console.print(
        Panel(
            f"[bold]Isolation:[/bold]          {settings.isolation_mode.value}\n"
            f"[bold]Workers:[/bold]            {settings.threads} ({mode})\n"
            f"[bold]Rows:[/bold]               {settings.rows}\n"
            f"[bold]Queries per update:[/bold] {settings.queries_per_update}\n"
            f"[bold]Duration:[/bold]           {settings.seconds}s",
            title="sibench",
            border_style="cyan",
        )
    )


def _print_summary(report: Report) -> None:
    """Print the final summary table, plus a per-worker breakdown."""
    table = Table(
        title="Benchmark Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Isolation", report.isolation_mode.value)
    table.add_row(
        "Workers",
        f"{report.participating_workers}/{report.requested_workers}",
    )
    table.add_row("Duration", f"{report.duration_seconds}s")
    table.add_row("Elapsed", f"{report.elapsed_seconds:.1f}s")
    table.add_row("Transactions (attempted)", str(report.total_transactions))
    table.add_row("Updates", str(report.total_updates))
    table.add_row("Failures", str(report.total_failures))
    table.add_row("Failure Rate", f"{report.failure_rate * 100:.2f}%")
    table.add_row("TPS (attempted)", f"{report.throughput:.1f}")
    table.add_row("TPS (successful)", f"{report.successful_throughput:.1f}")

    ws_table = Table(
        title="Per-Worker Breakdown",
        show_header=True,
        header_style="bold cyan",
        expand=True,
    )
    ws_table.add_column("Worker", justify="right")
    ws_table.add_column("Transactions", justify="right")
    ws_table.add_column("Updates", justify="right")
    ws_table.add_column("Failures", justify="right")
    ws_table.add_column("Status")

    for r in report.worker_results:
        if r.error_message is None:
            status = "[green]ok[/green]"
        elif r.started:
            status = f"[yellow]stopped: {r.error_message}[/yellow]"
        else:
            status = f"[red]{r.error_message}[/red]"
        ws_table.add_row(
            str(r.worker_id),
            str(r.transactions),
            str(r.updates),
            str(r.failures),
            status,
        )

    console.print(ws_table)
    console.print(table)


def run_cmd(
    conn_info: str | None = typer.Option(
        None,
        "--conn-info",
        "-c",
        help="libpq connection string [env: SIBENCH_CONN_INFO; default: dbname=postgres].",
    ),
    queries_per_update: int | None = typer.Option(
        None,
        "--queries-per-update",
        "-q",
        help="Reads issued between updates; 0 makes every statement an update.",
    ),
    rows: int | None = typer.Option(
        None,
        "--rows",
        "-r",
        help="Number of rows in the benchmark table (default: 10).",
    ),
    seconds: int | None = typer.Option(
        None,
        "--seconds",
        "-s",
        help="Run duration in seconds (default: 60).",
    ),
    threads: int | None = typer.Option(
        None,
        "--threads",
        "-t",
        help="Number of concurrent workers (default: 2).",
    ),
    ssi: bool | None = typer.Option(
        None,
        "--ssi/--no-ssi",
        help="Run under SERIALIZABLE instead of REPEATABLE READ.",
    ),
    table: str | None = typer.Option(
        None,
        "--table",
        help="Benchmark table name (default: sibench).",
    ),
    mode: str = typer.Option(
        "thread",
        "--mode",
        "-m",
        help="Worker execution: thread or process.",
    ),
    no_setup: bool = typer.Option(
        False,
        "--no-setup",
        help="Use the existing table instead of recreating it.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the report as JSON on stdout.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Run the read/update benchmark and print throughput and failures."""
    if mode not in _MODES:
        msg = f"Unknown mode: {mode}. Choose from: {', '.join(_MODES)}"
        raise typer.BadParameter(msg)

    if verbose:
        log_level = logging.DEBUG
    elif json_output:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    try:
        settings = load_config().with_overrides(
            conn_info=conn_info,
            queries_per_update=queries_per_update,
            rows=rows,
            seconds=seconds,
            threads=threads,
            ssi=ssi,
            table=table,
        )
        runner = BenchmarkRunner(
            settings,
            mode=mode,  # type: ignore[arg-type]
            provision=not no_setup,
            log_level=log_level,
        )
    except SibenchError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not json_output:
        _print_settings(settings, mode)

    try:
        report = runner.run()
    except SibenchError as exc:
        console.print(f"[red]Benchmark failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    _print_summary(report)

    if report.participating_workers < report.requested_workers:
        console.print(
            f"[yellow]Only {report.participating_workers} of "
            f"{report.requested_workers} workers participated.[/yellow]"
        )
    console.print(
        f"TPS = {report.throughput:f}, failures = {report.total_failures}",
        highlight=False,
    )
