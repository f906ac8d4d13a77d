"""Main Typer application — entry point for the ``sibench`` CLI."""

from __future__ import annotations

import typer

from sibench import __version__
from sibench.cli.run import run_cmd
from sibench.cli.setup_cmd import setup_cmd

app = typer.Typer(
    name="sibench",
    help="Drive a database with concurrent reads and conflicting updates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run the read/update benchmark.")(run_cmd)
app.command("setup", help="Create and populate the benchmark table only.")(setup_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sibench {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """sibench — snapshot-isolation contention benchmark."""
