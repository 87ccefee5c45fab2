"""REST API reconciliation services."""

from apigw_sync.services.gateway.errors import (
    AuthorizerProvisioningError,
    DuplicateEndpointError,
    EndpointConflictError,
    IntegrationProvisioningError,
    InvalidEndpointError,
    InvalidMethodError,
    ProvisioningError,
    PublishExhaustedError,
    ReconcileError,
    StaleIdentityError,
)
from apigw_sync.services.gateway.reconciler import GatewayReconciler
from apigw_sync.services.gateway.state_store import StateStore

__all__ = [
    "AuthorizerProvisioningError",
    "DuplicateEndpointError",
    "EndpointConflictError",
    "GatewayReconciler",
    "IntegrationProvisioningError",
    "InvalidEndpointError",
    "InvalidMethodError",
    "ProvisioningError",
    "PublishExhaustedError",
    "ReconcileError",
    "StaleIdentityError",
    "StateStore",
]
