"""Gateway identity resolution.

Decides whether a session reuses an existing REST API (remembered from a
previous deployment or supplied by the caller) or creates a new one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from apigw_sync.integrations.aws.models.gateway import GatewayIdentity
from apigw_sync.services.gateway.errors import StaleIdentityError
from apigw_sync.utils.ids import generate_id

if TYPE_CHECKING:
    from apigw_sync.core.config.models import DeployConfig
    from apigw_sync.integrations.aws.client import ApiGatewayClient
    from apigw_sync.integrations.aws.models.gateway import RememberedState

logger = structlog.get_logger()

GENERATED_NAME_PREFIX = "apigw"


def gateway_name(config: DeployConfig, remembered: RememberedState) -> str:
    """Pick the REST API name: remembered, configured, or freshly generated."""
    return remembered.name or config.name or f"{GENERATED_NAME_PREFIX}-{generate_id()}"


def lookup_identity(
    client: ApiGatewayClient,
    config: DeployConfig,
    remembered: RememberedState,
) -> GatewayIdentity | None:
    """Resolve an existing REST API without creating anything.

    Args:
        client: Provider client for the configured region.
        config: Desired configuration (may carry a caller-supplied id).
        remembered: Remembered state (may carry an id created earlier).

    Returns:
        The identity of the live REST API, or None when neither state nor
        configuration names one.

    Raises:
        StaleIdentityError: If the named REST API no longer exists.
    """
    api_id = remembered.id or config.id
    if not api_id:
        return None

    log = logger.bind(api_id=api_id, region=config.region)
    log.debug("checking_gateway_liveness")
    if not client.rest_api_exists(api_id):
        log.error("gateway_not_found")
        raise StaleIdentityError(api_id, config.region)

    log.info("reusing_gateway", source="state" if remembered.id else "config")
    return GatewayIdentity(
        id=api_id,
        name=gateway_name(config, remembered),
        description=config.description,
        region=config.region,
        stage=config.stage,
        endpoint_types=config.endpoint_types,
    )


def resolve_identity(
    client: ApiGatewayClient,
    config: DeployConfig,
    remembered: RememberedState,
) -> GatewayIdentity:
    """Resolve the REST API of a session, creating it when none is known.

    Creation is not idempotent: a failure propagates unchanged since
    nothing has been remembered yet.

    Raises:
        StaleIdentityError: If a remembered or supplied id no longer exists.
        ProviderAPIError: If creating the REST API fails.
    """
    identity = lookup_identity(client, config, remembered)
    if identity is not None:
        return identity

    name = gateway_name(config, remembered)
    logger.info("creating_gateway", name=name, region=config.region)
    api = client.create_rest_api(name, config.description, config.endpoint_types)
    logger.info("created_gateway", api_id=api["id"], name=name)

    return GatewayIdentity(
        id=api["id"],
        name=name,
        description=config.description,
        region=config.region,
        stage=config.stage,
        endpoint_types=config.endpoint_types,
        created=True,
    )
