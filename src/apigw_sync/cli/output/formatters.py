"""Output formatters for deploy, remove, plan, and state results.

Each formatter renders the same models: table output for people, JSON and
YAML (camelCase keys, as persisted) for scripts.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import yaml
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint
    from apigw_sync.integrations.aws.models.gateway import DeployOutputs, RememberedState
    from apigw_sync.integrations.aws.models.plan import SyncPlan

CHANGE_STYLES = {
    "new": "green",
    "modified": "yellow",
    "removed": "red",
    "unchanged": "dim",
}


class OutputFormat(StrEnum):
    """Supported output formats for CLI commands."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    def __init__(self, console: Console) -> None:
        self.console = console

    @abstractmethod
    def format_outputs(self, outputs: DeployOutputs, title: str = "") -> None:
        """Display the outputs of a deploy or remove."""

    @abstractmethod
    def format_plan(self, plan: SyncPlan) -> None:
        """Display a sync plan."""

    @abstractmethod
    def format_state(self, state: RememberedState) -> None:
        """Display remembered state."""

    def format_success(self, message: str) -> None:
        """Display a success message."""
        self.console.print(f"[green]{message}[/green]")


class TableFormatter(OutputFormatter):
    """Rich table output formatter."""

    def format_outputs(self, outputs: DeployOutputs, title: str = "") -> None:
        """Show the gateway summary followed by its endpoints."""
        summary = Table(title=title or "REST API", show_header=False)
        summary.add_column("Field", style="cyan", no_wrap=True)
        summary.add_column("Value", overflow="fold")
        summary.add_row("Name", outputs.name or "-")
        summary.add_row("Id", outputs.id or "-")
        summary.add_row("URL", outputs.url or "-")
        self.console.print(summary)
        self._endpoint_table(outputs.endpoints)

    def format_plan(self, plan: SyncPlan) -> None:
        """Show one row per endpoint with its classification."""
        table = Table(title="Sync Plan", show_header=True)
        table.add_column("Change", no_wrap=True)
        table.add_column("Method", style="cyan", no_wrap=True)
        table.add_column("Path", overflow="fold")
        table.add_column("Details", overflow="fold")

        for change in plan.changes:
            style = CHANGE_STYLES[change.kind]
            details = ", ".join(
                f"{field}: {old} -> {new}"
                for field, (old, new) in (change.field_changes or {}).items()
            )
            table.add_row(
                f"[{style}]{change.kind}[/{style}]",
                change.endpoint.method,
                change.endpoint.path,
                details or "-",
            )

        self.console.print(table)
        self.console.print(
            f"\n[dim]{len(plan.new)} new, {len(plan.modified)} modified, "
            f"{len(plan.removed)} removed, {len(plan.unchanged)} unchanged[/dim]"
        )

    def format_state(self, state: RememberedState) -> None:
        """Show remembered identity and endpoints."""
        summary = Table(title="Remembered State", show_header=False)
        summary.add_column("Field", style="cyan", no_wrap=True)
        summary.add_column("Value", overflow="fold")
        for label, value in (
            ("Id", state.id),
            ("Name", state.name),
            ("Region", state.region),
            ("Stage", state.stage),
            ("URL", state.url),
        ):
            summary.add_row(label, value or "-")
        self.console.print(summary)
        self._endpoint_table(state.endpoints)

    def _endpoint_table(self, endpoints: list[Endpoint]) -> None:
        if not endpoints:
            self.console.print("[dim]No endpoints[/dim]")
            return

        table = Table(title="Endpoints", show_header=True)
        table.add_column("Method", style="cyan", no_wrap=True)
        table.add_column("Path", overflow="fold")
        table.add_column("Function", overflow="fold")
        table.add_column("Authorizer")
        table.add_column("Path Id", no_wrap=True)
        for endpoint in endpoints:
            table.add_row(
                endpoint.method,
                endpoint.path,
                endpoint.integration.target,
                endpoint.authorizer.name if endpoint.authorizer else "-",
                endpoint.path_id or "-",
            )
        self.console.print(table)
        self.console.print(f"\n[dim]Total: {len(endpoints)} endpoints[/dim]")


class JsonFormatter(OutputFormatter):
    """JSON output formatter."""

    def _print(self, data: Any) -> None:
        self.console.print(
            json.dumps(data, indent=2),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def format_outputs(self, outputs: DeployOutputs, title: str = "") -> None:
        """Format outputs as JSON."""
        self._print(outputs.to_payload())

    def format_plan(self, plan: SyncPlan) -> None:
        """Format the plan as JSON grouped by change kind."""
        self._print(_plan_summary(plan))

    def format_state(self, state: RememberedState) -> None:
        """Format state as JSON."""
        self._print(state.to_payload())


class YamlFormatter(OutputFormatter):
    """YAML output formatter."""

    def _print(self, data: Any) -> None:
        self.console.print(
            yaml.dump(data, default_flow_style=False, sort_keys=False),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def format_outputs(self, outputs: DeployOutputs, title: str = "") -> None:
        """Format outputs as YAML."""
        self._print(outputs.to_payload())

    def format_plan(self, plan: SyncPlan) -> None:
        """Format the plan as YAML grouped by change kind."""
        self._print(_plan_summary(plan))

    def format_state(self, state: RememberedState) -> None:
        """Format state as YAML."""
        self._print(state.to_payload())


def _plan_summary(plan: SyncPlan) -> dict[str, Any]:
    def keys(changes: list[Any]) -> list[dict[str, str]]:
        return [{"method": c.endpoint.method, "path": c.endpoint.path} for c in changes]

    return {
        "new": keys(plan.new),
        "modified": keys(plan.modified),
        "removed": keys(plan.removed),
        "unchanged": keys(plan.unchanged),
        "totalChanges": plan.total_changes,
    }


def get_formatter(format_type: OutputFormat, console: Console | None = None) -> OutputFormatter:
    """Factory function to get the appropriate formatter.

    Example:
        >>> formatter = get_formatter(OutputFormat.JSON)
        >>> formatter.format_outputs(outputs)
    """
    if console is None:
        console = Console()

    formatters: dict[OutputFormat, type[OutputFormatter]] = {
        OutputFormat.TABLE: TableFormatter,
        OutputFormat.JSON: JsonFormatter,
        OutputFormat.YAML: YamlFormatter,
    }
    return formatters.get(format_type, TableFormatter)(console)
