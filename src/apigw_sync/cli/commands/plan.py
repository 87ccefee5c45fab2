"""Plan command: show what a deploy would change."""

from __future__ import annotations

from apigw_sync.cli.commands.base import (
    DEFAULT_CONFIG,
    ConfigOption,
    OutputOption,
    StateKeyOption,
    build_reconciler,
    console,
    handle_error,
)
from apigw_sync.cli.output import OutputFormat, get_formatter
from apigw_sync.core.config.models import ConfigError, load_config
from apigw_sync.integrations.aws.exceptions import ProviderAPIError
from apigw_sync.services.gateway.errors import ReconcileError


def plan(
    config: ConfigOption = DEFAULT_CONFIG,
    state_key: StateKeyOption = None,
    output: OutputOption = OutputFormat.TABLE,
) -> None:
    """Compare the configured endpoints with the last deployment, without changing anything."""
    try:
        project = load_config(config, state_key)
        sync_plan = build_reconciler(project).plan(project.deploy)
    except (ConfigError, ReconcileError, ProviderAPIError) as e:
        handle_error(e)
        return

    get_formatter(output, console).format_plan(sync_plan)
