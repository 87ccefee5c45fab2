"""Shared pytest fixtures for apigw_sync tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from apigw_sync.cli.main import app
from apigw_sync.core.config.models import ReconcilerSettings
from apigw_sync.services.gateway.reconciler import GatewayReconciler
from apigw_sync.services.gateway.state_store import StateStore
from tests.fakes import FakeApiGatewayClient


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary deployment config file."""
    config_path = temp_dir / "apigw.yaml"
    config_path.write_text(
        f"""
name: users-api
region: us-east-1
stage: dev
endpoints:
  - path: /users
    method: GET
    integration:
      functionName: fnA
settings:
  settle_seconds: 0
  state_dir: {temp_dir / "state"}
"""
    )
    return config_path


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    # Clear any APIGW_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("APIGW_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Fixture to capture log output."""
    import logging

    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture
def fake_client() -> FakeApiGatewayClient:
    """Create an in-memory provider."""
    return FakeApiGatewayClient()


@pytest.fixture
def sleeps() -> list[float]:
    """Collect pauses requested by the code under test."""
    return []


@pytest.fixture
def settings(temp_dir: Path) -> ReconcilerSettings:
    """Reconciler settings with a temporary state directory."""
    return ReconcilerSettings(state_dir=temp_dir / "state")


@pytest.fixture
def store(settings: ReconcilerSettings) -> StateStore:
    """State store in the temporary state directory."""
    return StateStore(settings.state_dir, "test")


@pytest.fixture
def reconciler(
    store: StateStore,
    settings: ReconcilerSettings,
    fake_client: FakeApiGatewayClient,
    sleeps: list[float],
) -> GatewayReconciler:
    """Reconciler wired to the in-memory provider."""
    return GatewayReconciler(
        store,
        settings,
        client_factory=lambda region, config: fake_client,  # type: ignore[arg-type,return-value]
        sleep=sleeps.append,
    )
