"""Deployment configuration and reconciler settings.

A project is described by a single YAML file (``apigw.yaml`` by default):

```yaml
name: users-api
region: us-east-1
stage: dev
endpoints:
  - path: /users
    method: GET
    integration:
      functionName: users-list
settings:
  settle_seconds: 2
connection:
  profile: sandbox
```

Top-level keys other than ``settings`` and ``connection`` form the
DeployConfig (the desired state). Environment variables override file
values.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from apigw_sync.integrations.aws.config import AwsConnectionConfig
from apigw_sync.integrations.aws.models.base import ApiModelBase
from apigw_sync.integrations.aws.models.endpoint import Endpoint

DEFAULT_CONFIG_FILE = Path("apigw.yaml")
DEFAULT_STATE_DIR = Path.home() / ".local" / "state" / "apigw-sync"
DEFAULT_REGION = "us-east-1"
DEFAULT_STAGE = "dev"
DEFAULT_DESCRIPTION = "Managed REST API"

VALID_ENDPOINT_TYPES = frozenset({"EDGE", "REGIONAL", "PRIVATE"})
STAGE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class ConfigError(Exception):
    """Raised when a configuration file or override is invalid."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class DeployConfig(ApiModelBase):
    """Desired state of a REST API.

    Attributes:
        name: REST API name. Generated on first deploy when omitted.
        id: Existing REST API to adopt instead of creating one.
        description: REST API description (used on creation).
        region: AWS region.
        stage: Stage deployments are published to.
        endpoint_types: Endpoint configuration types of the REST API.
        endpoints: Desired endpoints.
    """

    name: str | None = None
    id: str | None = None
    description: str = DEFAULT_DESCRIPTION
    region: str = DEFAULT_REGION
    stage: str = DEFAULT_STAGE
    endpoint_types: list[str] = Field(default_factory=lambda: ["EDGE"])
    endpoints: list[Endpoint] = Field(default_factory=list)

    @field_validator("endpoint_types")
    @classmethod
    def validate_endpoint_types(cls, v: list[str]) -> list[str]:
        """Validate and upper-case endpoint types."""
        types = [t.upper() for t in v]
        invalid = sorted(set(types) - VALID_ENDPOINT_TYPES)
        if invalid:
            raise ValueError(
                f"endpointTypes must be one of: {', '.join(sorted(VALID_ENDPOINT_TYPES))}"
                f" (got {', '.join(invalid)})"
            )
        if not types:
            raise ValueError("endpointTypes must not be empty")
        return types

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Validate the stage name (API Gateway allows [A-Za-z0-9_])."""
        if not STAGE_NAME_PATTERN.match(v):
            raise ValueError("stage may only contain letters, digits, and underscores")
        return v

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate the region is not empty."""
        if not v:
            raise ValueError("region must not be empty")
        return v


class ReconcilerSettings(BaseModel):
    """Tuning knobs of the reconciliation pipeline."""

    model_config = ConfigDict(extra="forbid")

    settle_seconds: float = Field(default=2.0, ge=0)
    publish_attempts: int = Field(default=5, ge=1)
    publish_wait_seconds: float = Field(default=2.0, ge=0)
    max_workers: int | None = Field(default=None, ge=1)
    state_dir: Path = DEFAULT_STATE_DIR

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> ReconcilerSettings:
        """Create settings with environment variable overrides.

        Supported environment variables:
            APIGW_SETTLE_SECONDS: Pause between method and integration provisioning
            APIGW_PUBLISH_ATTEMPTS: Attempts for publishing a deployment
            APIGW_MAX_WORKERS: Thread cap for concurrent provisioning
            APIGW_STATE_DIR: Directory holding remembered state files
        """
        config_dict = base_config.copy() if base_config else {}

        if settle := os.environ.get("APIGW_SETTLE_SECONDS"):
            config_dict["settle_seconds"] = settle

        if attempts := os.environ.get("APIGW_PUBLISH_ATTEMPTS"):
            config_dict["publish_attempts"] = attempts

        if workers := os.environ.get("APIGW_MAX_WORKERS"):
            config_dict["max_workers"] = workers

        if state_dir := os.environ.get("APIGW_STATE_DIR"):
            config_dict["state_dir"] = state_dir

        return cls.model_validate(config_dict)


class ProjectConfig(BaseModel):
    """Everything loaded from a project configuration file."""

    model_config = ConfigDict(extra="forbid")

    deploy: DeployConfig = DeployConfig()
    settings: ReconcilerSettings = ReconcilerSettings()
    connection: AwsConnectionConfig = AwsConnectionConfig()
    state_key: str = "default"


def load_raw_config(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a dictionary.

    Args:
        path: Path to the YAML file.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path.name}: {e}", path=path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the top level", path=path)
    return data


def load_config(path: Path = DEFAULT_CONFIG_FILE, state_key: str | None = None) -> ProjectConfig:
    """Load and validate a project configuration file.

    Environment overrides:
        APIGW_REGION: Region of the REST API
        APIGW_STAGE: Stage to publish to
        plus those of ReconcilerSettings.from_env and AwsConnectionConfig.from_env

    Args:
        path: Path to the YAML file.
        state_key: Name of the remembered-state entry. Defaults to the
            configuration file stem.

    Returns:
        The validated ProjectConfig.

    Raises:
        ConfigError: If the file or any override is invalid.
    """
    raw = load_raw_config(path)
    settings_raw = raw.pop("settings", None) or {}
    connection_raw = raw.pop("connection", None) or {}

    if region := os.environ.get("APIGW_REGION"):
        raw["region"] = region
    if stage := os.environ.get("APIGW_STAGE"):
        raw["stage"] = stage

    try:
        return ProjectConfig(
            deploy=DeployConfig.model_validate(raw),
            settings=ReconcilerSettings.from_env(settings_raw),
            connection=AwsConnectionConfig.from_env(connection_raw),
            state_key=state_key or path.stem,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path.name}:\n{e}", path=path) from e
