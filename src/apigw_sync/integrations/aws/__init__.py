"""AWS integration - API Gateway / Lambda client adapter and models."""

from apigw_sync.integrations.aws.client import ApiGatewayClient
from apigw_sync.integrations.aws.config import AwsConnectionConfig
from apigw_sync.integrations.aws.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConflictError,
    ProviderConnectionError,
    ProviderNotFoundError,
    ProviderThrottledError,
    ProviderValidationError,
)

__all__ = [
    "ApiGatewayClient",
    "AwsConnectionConfig",
    "ProviderAPIError",
    "ProviderAuthError",
    "ProviderConflictError",
    "ProviderConnectionError",
    "ProviderNotFoundError",
    "ProviderThrottledError",
    "ProviderValidationError",
]
