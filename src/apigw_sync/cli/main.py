"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from apigw_sync import __version__
from apigw_sync.cli.commands import deploy, plan, remove, state
from apigw_sync.logging.config import configure_logging

app = typer.Typer(
    name="apigw",
    help="Keep an API Gateway REST API in sync with declared endpoints.",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"apigw version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit console logs as JSON.",
    ),
) -> None:
    """apigw - reconcile REST API endpoints with Lambda backends."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)


app.command()(deploy.deploy)
app.command()(plan.plan)
app.command()(remove.remove)
app.command()(state.state)


if __name__ == "__main__":
    app()
