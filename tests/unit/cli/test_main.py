"""Tests for the CLI entry point and commands."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import yaml
from structlog.testing import capture_logs
from typer.testing import CliRunner

from apigw_sync.cli.main import app
from apigw_sync.integrations.aws.exceptions import ProviderAuthError
from apigw_sync.integrations.aws.models.gateway import DeployOutputs
from tests.fakes import FakeApiGatewayClient


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[list[dict[str, Any]]]:
    """Keep log output out of command output and skip file logging."""
    with (
        patch("apigw_sync.cli.main.configure_logging") as configure,
        capture_logs() as logs,
    ):
        configure.return_value = None
        yield logs


@pytest.fixture
def provider(fake_client: FakeApiGatewayClient) -> Generator[FakeApiGatewayClient]:
    """Route every reconciler built by the CLI to the in-memory provider."""
    with patch(
        "apigw_sync.services.gateway.reconciler._default_client_factory",
        lambda region, config: fake_client,
    ):
        yield fake_client


def _invoke(cli_runner: CliRunner, *args: str) -> Any:
    return cli_runner.invoke(app, list(args))


@pytest.mark.unit
class TestCLIMain:
    """Test main CLI entry point."""

    def test_help_option(self, cli_runner: CliRunner) -> None:
        """--help lists the commands."""
        result = _invoke(cli_runner, "--help")

        assert result.exit_code == 0
        for command in ("deploy", "plan", "remove", "state"):
            assert command in result.stdout

    def test_version_option(self, cli_runner: CliRunner) -> None:
        """--version prints the version."""
        result = _invoke(cli_runner, "--version")

        assert result.exit_code == 0
        assert "apigw version" in result.stdout

    def test_logging_flags(self, cli_runner: CliRunner, temp_config_file: Path) -> None:
        """Global flags configure logging before the command runs."""
        with patch("apigw_sync.cli.main.configure_logging") as configure:
            result = _invoke(
                cli_runner, "--debug", "--json-logs", "state", "-c", str(temp_config_file)
            )

        assert result.exit_code == 0
        configure.assert_called_once_with(verbose=False, debug=True, json_output=True)


@pytest.mark.unit
class TestDeployCommand:
    """Tests for the deploy command."""

    def test_deploy_json(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """Deploy prints the outputs with camelCase keys."""
        result = _invoke(cli_runner, "deploy", "-c", str(temp_config_file), "-o", "json")

        assert result.exit_code == 0, result.stdout
        outputs = json.loads(result.stdout)
        assert outputs["name"] == "users-api"
        assert outputs["url"] == (
            f"https://{outputs['id']}.execute-api.us-east-1.amazonaws.com/dev"
        )
        (endpoint,) = outputs["endpoints"]
        assert endpoint["path"] == "/users"
        assert endpoint["pathId"]
        assert endpoint["methodId"] == f"{endpoint['pathId']}/GET"
        assert outputs["id"] in provider.apis

    def test_deploy_table(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """Table output ends with a success line."""
        result = _invoke(cli_runner, "deploy", "-c", str(temp_config_file))

        assert result.exit_code == 0, result.stdout
        assert "Deployed 1 endpoint(s)" in result.stdout
        assert "/users" in result.stdout

    def test_missing_config(self, cli_runner: CliRunner, temp_dir: Path) -> None:
        """A missing configuration file exits with status 1."""
        result = _invoke(cli_runner, "deploy", "-c", str(temp_dir / "missing.yaml"))

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "not found" in result.stdout

    def test_reconcile_error(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
        quiet_logging: list[dict[str, Any]],
    ) -> None:
        """Provider errors exit with status 1, a hint, and a log event."""
        provider.failures["create_rest_api"].append(ProviderAuthError("expired token"))

        result = _invoke(cli_runner, "deploy", "-c", str(temp_config_file))

        assert result.exit_code == 1
        assert "expired token" in result.stdout
        assert "credentials" in result.stdout
        assert any(entry["event"] == "deploy_failed" for entry in quiet_logging)


@pytest.mark.unit
class TestPlanCommand:
    """Tests for the plan command."""

    def test_plan_before_first_deploy(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """Everything is new and nothing is created."""
        result = _invoke(cli_runner, "plan", "-c", str(temp_config_file), "-o", "yaml")

        assert result.exit_code == 0, result.stdout
        summary = yaml.safe_load(result.stdout)
        assert summary["new"] == [{"method": "GET", "path": "/users"}]
        assert summary["totalChanges"] == 1
        assert provider.mutating_calls == []

    def test_plan_after_deploy(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """An unchanged configuration plans no changes."""
        _invoke(cli_runner, "deploy", "-c", str(temp_config_file))

        result = _invoke(cli_runner, "plan", "-c", str(temp_config_file))

        assert result.exit_code == 0, result.stdout
        assert "0 new, 0 modified, 0 removed, 1 unchanged" in result.stdout


@pytest.mark.unit
class TestRemoveCommand:
    """Tests for the remove command."""

    def test_remove_with_force(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """--force skips the prompt and deletes the gateway."""
        deployed = json.loads(
            _invoke(cli_runner, "deploy", "-c", str(temp_config_file), "-o", "json").stdout
        )

        result = _invoke(cli_runner, "remove", "-c", str(temp_config_file), "--force")

        assert result.exit_code == 0, result.stdout
        assert "Removed and cleared remembered state" in result.stdout
        assert deployed["id"] not in provider.apis

    def test_remove_cancelled(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """Declining the prompt changes nothing."""
        _invoke(cli_runner, "deploy", "-c", str(temp_config_file))
        provider.reset_calls()

        result = cli_runner.invoke(app, ["remove", "-c", str(temp_config_file)], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        assert provider.calls == []

    def test_remove_uses_built_reconciler(
        self, cli_runner: CliRunner, temp_config_file: Path
    ) -> None:
        """The reconciler receives the deploy section of the configuration."""
        reconciler = MagicMock()
        reconciler.remove.return_value = DeployOutputs(name="users-api")
        with patch(
            "apigw_sync.cli.commands.remove.build_reconciler", return_value=reconciler
        ) as build:
            result = _invoke(
                cli_runner, "remove", "-c", str(temp_config_file), "-f", "-o", "json"
            )

        assert result.exit_code == 0
        project = build.call_args.args[0]
        assert project.state_key == "apigw"
        reconciler.remove.assert_called_once_with(project.deploy)


@pytest.mark.unit
class TestStateCommand:
    """Tests for the state command."""

    def test_nothing_remembered(self, cli_runner: CliRunner, temp_config_file: Path) -> None:
        """Before the first deploy nothing is remembered."""
        result = _invoke(cli_runner, "state", "-c", str(temp_config_file))

        assert result.exit_code == 0
        assert "Nothing remembered" in result.stdout

    def test_state_after_deploy(
        self,
        cli_runner: CliRunner,
        temp_config_file: Path,
        provider: FakeApiGatewayClient,
    ) -> None:
        """The remembered state mirrors the deploy outputs."""
        deployed = json.loads(
            _invoke(cli_runner, "deploy", "-c", str(temp_config_file), "-o", "json").stdout
        )

        result = _invoke(
            cli_runner, "state", "-c", str(temp_config_file), "-k", "apigw", "-o", "json"
        )

        assert result.exit_code == 0, result.stdout
        remembered = json.loads(result.stdout)
        assert remembered["id"] == deployed["id"]
        assert remembered["url"] == deployed["url"]
        assert remembered["endpoints"] == deployed["endpoints"]
