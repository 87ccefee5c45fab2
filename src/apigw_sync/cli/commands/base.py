"""Shared options, error handling, and wiring for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from apigw_sync.cli.output import OutputFormat
from apigw_sync.core.config.models import DEFAULT_CONFIG_FILE, ConfigError, ProjectConfig
from apigw_sync.integrations.aws.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
)
from apigw_sync.services.gateway.errors import (
    EndpointConflictError,
    ProvisioningError,
    PublishExhaustedError,
    ReconcileError,
    StaleIdentityError,
)
from apigw_sync.services.gateway.reconciler import GatewayReconciler
from apigw_sync.services.gateway.state_store import StateStore

console = Console()


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to the deployment configuration file",
        envvar="APIGW_CONFIG",
    ),
]

StateKeyOption = Annotated[
    str | None,
    typer.Option(
        "--state-key",
        "-k",
        help="Name of the remembered state entry (defaults to the config file stem)",
    ),
]

OutputOption = Annotated[
    OutputFormat,
    typer.Option(
        "--output",
        "-o",
        help="Output format: table, json, or yaml",
        case_sensitive=False,
    ),
]

ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Skip confirmation prompts",
    ),
]

DEFAULT_CONFIG = DEFAULT_CONFIG_FILE


# =============================================================================
# Wiring
# =============================================================================


def build_reconciler(project: ProjectConfig) -> GatewayReconciler:
    """Create a reconciler for a loaded project configuration."""
    store = StateStore(project.settings.state_dir, project.state_key)
    return GatewayReconciler(store, project.settings, project.connection)


# =============================================================================
# Error Handling
# =============================================================================


def handle_error(error: ReconcileError | ProviderAPIError | ConfigError) -> None:
    """Print an error with a hint and exit with status 1.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    console.print(f"[red]Error:[/red] {escape(str(error))}")

    if isinstance(error, StaleIdentityError):
        console.print("\n[dim]Hint: run 'apigw remove' or drop the id from the config.[/dim]")
    elif isinstance(error, EndpointConflictError):
        console.print("\n[dim]Hint: rename the endpoint path or remove the existing one.[/dim]")
    elif isinstance(error, ProvisioningError):
        for unit, cause in error.failures.items():
            console.print(f"  - {escape(str(unit))}: {escape(str(cause))}")
    elif isinstance(error, PublishExhaustedError):
        console.print("\n[dim]Configuration was applied but is not live. Re-run deploy.[/dim]")
    elif isinstance(error, ProviderConnectionError):
        if error.original_error:
            console.print(f"  Cause: {escape(str(error.original_error))}")
        console.print("\n[dim]Hint: check network access to the AWS endpoints.[/dim]")
    elif isinstance(error, ProviderAuthError):
        console.print("\n[dim]Hint: check your AWS credentials or profile.[/dim]")

    raise typer.Exit(1)


# =============================================================================
# Confirmation Utilities
# =============================================================================


def confirm_action(message: str, default: bool = False) -> bool:
    """Prompt user to confirm an action."""
    return typer.confirm(message, default=default)
