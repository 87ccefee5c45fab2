"""Remove command: tear down what the last deploy created."""

from __future__ import annotations

import structlog
import typer

from apigw_sync.cli.commands.base import (
    DEFAULT_CONFIG,
    ConfigOption,
    ForceOption,
    OutputOption,
    StateKeyOption,
    build_reconciler,
    confirm_action,
    console,
    handle_error,
)
from apigw_sync.cli.output import OutputFormat, get_formatter
from apigw_sync.core.config.models import ConfigError, load_config
from apigw_sync.integrations.aws.exceptions import ProviderAPIError
from apigw_sync.services.gateway.errors import ReconcileError

logger = structlog.get_logger()


def remove(
    config: ConfigOption = DEFAULT_CONFIG,
    state_key: StateKeyOption = None,
    force: ForceOption = False,
    output: OutputOption = OutputFormat.TABLE,
) -> None:
    """Delete the REST API (or its remembered endpoints) and forget it."""
    try:
        project = load_config(config, state_key)
    except ConfigError as e:
        handle_error(e)
        return

    if not force and not confirm_action(
        f"Remove the REST API deployed from '{config}'?",
    ):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    try:
        outputs = build_reconciler(project).remove(project.deploy)
    except (ReconcileError, ProviderAPIError) as e:
        logger.error("remove_failed", error=str(e))
        handle_error(e)
        return

    formatter = get_formatter(output, console)
    formatter.format_outputs(outputs, title="Removed REST API")
    if output == OutputFormat.TABLE:
        formatter.format_success("Removed and cleared remembered state")
