"""Tests for CLI output formatters."""

from __future__ import annotations

import io
import json

import pytest
import yaml
from rich.console import Console

from apigw_sync.cli.output import OutputFormat, get_formatter
from apigw_sync.cli.output.formatters import JsonFormatter, TableFormatter, YamlFormatter
from apigw_sync.integrations.aws.models.gateway import DeployOutputs, RememberedState
from apigw_sync.integrations.aws.models.plan import EndpointChange, SyncPlan
from tests.fakes import make_endpoint


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


@pytest.fixture
def outputs() -> DeployOutputs:
    """Outputs of a deploy with two endpoints."""
    return DeployOutputs(
        name="users-api",
        id="abc123",
        url="https://abc123.execute-api.us-east-1.amazonaws.com/dev",
        endpoints=[
            make_endpoint("/users", path_id="res1", method_id="res1/GET"),
            make_endpoint("/users/{id}", "DELETE", authorizer="auth", path_id="res2"),
        ],
    )


@pytest.fixture
def plan() -> SyncPlan:
    """A plan with one change of each kind."""
    return SyncPlan(
        changes=[
            EndpointChange(kind="unchanged", endpoint=make_endpoint("/a")),
            EndpointChange(kind="new", endpoint=make_endpoint("/b")),
            EndpointChange(
                kind="modified",
                endpoint=make_endpoint("/c", function="fnB"),
                previous=make_endpoint("/c"),
                field_changes={"integration": ("fnA", "fnB")},
            ),
            EndpointChange(kind="removed", endpoint=make_endpoint("/d", "POST")),
        ]
    )


@pytest.mark.unit
class TestGetFormatter:
    """Tests for get_formatter."""

    @pytest.mark.parametrize(
        ("fmt", "expected"),
        [
            (OutputFormat.TABLE, TableFormatter),
            (OutputFormat.JSON, JsonFormatter),
            (OutputFormat.YAML, YamlFormatter),
        ],
    )
    def test_formatter_types(self, fmt: OutputFormat, expected: type) -> None:
        """Each format maps to its formatter."""
        assert isinstance(get_formatter(fmt), expected)


@pytest.mark.unit
class TestTableFormatter:
    """Tests for TableFormatter."""

    def test_outputs(self, outputs: DeployOutputs) -> None:
        """The summary and every endpoint are shown."""
        console, buffer = _console()

        TableFormatter(console).format_outputs(outputs, title="Deployed REST API")

        text = buffer.getvalue()
        assert "Deployed REST API" in text
        assert outputs.url in text
        assert "/users/{id}" in text
        assert "auth" in text
        assert "Total: 2 endpoints" in text

    def test_plan(self, plan: SyncPlan) -> None:
        """Field changes and the totals line are shown."""
        console, buffer = _console()

        TableFormatter(console).format_plan(plan)

        text = buffer.getvalue()
        assert "integration: fnA -> fnB" in text
        assert "1 new, 1 modified, 1 removed, 1 unchanged" in text

    def test_empty_state(self) -> None:
        """State without endpoints says so."""
        console, buffer = _console()

        TableFormatter(console).format_state(RememberedState(id="abc123"))

        assert "No endpoints" in buffer.getvalue()


@pytest.mark.unit
class TestMachineFormats:
    """Tests for JSON and YAML output."""

    def test_json_outputs(self, outputs: DeployOutputs) -> None:
        """JSON uses camelCase keys and omits empty values."""
        console, buffer = _console()

        JsonFormatter(console).format_outputs(outputs)

        data = json.loads(buffer.getvalue())
        assert data["endpoints"][0]["methodId"] == "res1/GET"
        assert "methodId" not in data["endpoints"][1]
        assert data["endpoints"][1]["authorizer"]["name"] == "auth"
        assert data == outputs.to_payload()

    def test_yaml_plan(self, plan: SyncPlan) -> None:
        """The plan is grouped by change kind."""
        console, buffer = _console()

        YamlFormatter(console).format_plan(plan)

        data = yaml.safe_load(buffer.getvalue())
        assert data["new"] == [{"method": "GET", "path": "/b"}]
        assert data["removed"] == [{"method": "POST", "path": "/d"}]
        assert data["totalChanges"] == 3

    def test_json_state(self) -> None:
        """Remembered state renders as persisted."""
        console, buffer = _console()

        JsonFormatter(console).format_state(RememberedState(id="abc123", stage="dev"))

        assert json.loads(buffer.getvalue()) == {"id": "abc123", "stage": "dev", "endpoints": []}
