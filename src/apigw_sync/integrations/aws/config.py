"""AWS provider connection configuration."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class AwsConnectionConfig(BaseModel):
    """Connection settings shared by the API Gateway and Lambda SDK clients."""

    model_config = ConfigDict(extra="forbid")

    profile: str | None = None
    timeout: int = 30
    retries: int = 3

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        """Validate retries is at least one attempt."""
        if v < 1:
            raise ValueError("retries must be at least 1")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> AwsConnectionConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            APIGW_PROFILE: Named AWS profile used to build the boto3 session
            APIGW_TIMEOUT: Per-call connect/read timeout in seconds
            APIGW_RETRIES: Attempts for calls failing with connection errors
        """
        config_dict = base_config.copy() if base_config else {}

        if profile := os.environ.get("APIGW_PROFILE"):
            config_dict["profile"] = profile

        if timeout := os.environ.get("APIGW_TIMEOUT"):
            config_dict["timeout"] = timeout

        if retries := os.environ.get("APIGW_RETRIES"):
            config_dict["retries"] = retries

        return cls.model_validate(config_dict)
