"""Pydantic models for API Gateway reconciliation."""

from apigw_sync.integrations.aws.models.base import ApiModelBase
from apigw_sync.integrations.aws.models.endpoint import (
    DEFAULT_IDENTITY_SOURCE,
    DEFAULT_RESULT_TTL,
    Endpoint,
    EndpointAuthorizer,
    EndpointIntegration,
    EndpointKey,
    normalize_path,
)
from apigw_sync.integrations.aws.models.gateway import (
    DeployOutputs,
    GatewayIdentity,
    RememberedState,
    build_url,
)
from apigw_sync.integrations.aws.models.plan import ChangeKind, EndpointChange, SyncPlan

__all__ = [
    "DEFAULT_IDENTITY_SOURCE",
    "DEFAULT_RESULT_TTL",
    "ApiModelBase",
    "ChangeKind",
    "DeployOutputs",
    "Endpoint",
    "EndpointAuthorizer",
    "EndpointChange",
    "EndpointIntegration",
    "EndpointKey",
    "GatewayIdentity",
    "RememberedState",
    "SyncPlan",
    "build_url",
    "normalize_path",
]
