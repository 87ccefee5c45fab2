"""State command: show the remembered deployment."""

from __future__ import annotations

from apigw_sync.cli.commands.base import (
    DEFAULT_CONFIG,
    ConfigOption,
    OutputOption,
    StateKeyOption,
    console,
    handle_error,
)
from apigw_sync.cli.output import OutputFormat, get_formatter
from apigw_sync.core.config.models import ConfigError, load_config
from apigw_sync.services.gateway.state_store import StateStore


def state(
    config: ConfigOption = DEFAULT_CONFIG,
    state_key: StateKeyOption = None,
    output: OutputOption = OutputFormat.TABLE,
) -> None:
    """Print the state remembered from the last successful deploy."""
    try:
        project = load_config(config, state_key)
        store = StateStore(project.settings.state_dir, project.state_key)
        remembered = store.load()
    except ConfigError as e:
        handle_error(e)
        return

    if remembered.is_empty and output == OutputFormat.TABLE:
        console.print(f"[yellow]Nothing remembered[/yellow] at {store.path}")
        return

    get_formatter(output, console).format_state(remembered)
