"""Deploy command: converge the REST API to the configuration."""

from __future__ import annotations

import structlog

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

logger = structlog.get_logger()


def deploy(
    config: ConfigOption = DEFAULT_CONFIG,
    state_key: StateKeyOption = None,
    output: OutputOption = OutputFormat.TABLE,
) -> None:
    """Create or update the REST API so it serves exactly the configured endpoints."""
    try:
        project = load_config(config, state_key)
        outputs = build_reconciler(project).deploy(project.deploy)
    except (ConfigError, ReconcileError, ProviderAPIError) as e:
        logger.error("deploy_failed", error=str(e))
        handle_error(e)
        return

    formatter = get_formatter(output, console)
    formatter.format_outputs(outputs, title="Deployed REST API")
    if output == OutputFormat.TABLE:
        formatter.format_success(f"Deployed {len(outputs.endpoints)} endpoint(s) to {outputs.url}")
