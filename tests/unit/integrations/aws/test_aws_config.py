"""Unit tests for AWS connection configuration."""

from __future__ import annotations

import pytest

from apigw_sync.integrations.aws.config import AwsConnectionConfig
from apigw_sync.integrations.aws.exceptions import (
    ERROR_CODE_MAP,
    ProviderAPIError,
    ProviderConnectionError,
)


@pytest.mark.unit
class TestAwsConnectionConfig:
    """Tests for AwsConnectionConfig."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables win over file values."""
        monkeypatch.setenv("APIGW_PROFILE", "sandbox")
        monkeypatch.setenv("APIGW_TIMEOUT", "5")

        config = AwsConnectionConfig.from_env({"profile": "prod", "retries": 4})

        assert config.profile == "sandbox"
        assert config.timeout == 5
        assert config.retries == 4

    @pytest.mark.parametrize("field", ["timeout", "retries"])
    def test_rejects_non_positive(self, field: str) -> None:
        """Timeout and retries must be positive."""
        with pytest.raises(ValueError, match=field):
            AwsConnectionConfig.model_validate({field: 0})


@pytest.mark.unit
class TestProviderErrors:
    """Tests for provider exception formatting."""

    def test_str_includes_code_and_operation(self) -> None:
        """The message carries the provider code and SDK operation."""
        error = ProviderAPIError("boom", code="BadRequestException", operation="put_method")

        assert str(error) == "boom (code: BadRequestException) [operation: put_method]"

    def test_connection_error_keeps_cause(self) -> None:
        """The original exception is kept for diagnostics."""
        cause = OSError("unreachable")
        error = ProviderConnectionError(operation="get_resources", original_error=cause)

        assert error.original_error is cause
        assert error.code is None

    def test_every_mapped_class_is_provider_error(self) -> None:
        """All mapped classes share the provider base."""
        assert all(issubclass(cls, ProviderAPIError) for cls in ERROR_CODE_MAP.values())
