"""Sync planning: classify desired endpoints against remembered ones."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from apigw_sync.integrations.aws.models.plan import EndpointChange, SyncPlan

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint

logger = structlog.get_logger()


def _compare_endpoint(previous: Endpoint, desired: Endpoint) -> dict[str, tuple[Any, Any]]:
    """Return changed configuration fields as {field: (old, new)}."""
    changes: dict[str, tuple[Any, Any]] = {}

    if previous.integration.target != desired.integration.target:
        changes["integration"] = (previous.integration.target, desired.integration.target)

    old_auth = previous.authorizer.config_fingerprint() if previous.authorizer else None
    new_auth = desired.authorizer.config_fingerprint() if desired.authorizer else None
    if old_auth != new_auth:
        changes["authorizer"] = (
            previous.authorizer.name if previous.authorizer else None,
            desired.authorizer.name if desired.authorizer else None,
        )

    if previous.authorization_type != desired.authorization_type:
        changes["authorization"] = (previous.authorization_type, desired.authorization_type)

    if previous.api_key_required != desired.api_key_required:
        changes["api_key_required"] = (previous.api_key_required, desired.api_key_required)

    return changes


def plan_sync(desired: Iterable[Endpoint], remembered: Iterable[Endpoint]) -> SyncPlan:
    """Classify endpoints as unchanged, new, modified, or removed.

    Endpoints are matched by natural key (path, METHOD). Desired endpoints
    keep their input order; removals follow in remembered order.

    Args:
        desired: Validated desired endpoints.
        remembered: Endpoints of the last successful deployment.

    Returns:
        The sync plan.
    """
    desired_list = list(desired)
    remembered_by_key = {endpoint.key: endpoint for endpoint in remembered}
    desired_keys = {endpoint.key for endpoint in desired_list}

    changes: list[EndpointChange] = []
    for endpoint in desired_list:
        previous = remembered_by_key.get(endpoint.key)
        if previous is None:
            changes.append(EndpointChange(kind="new", endpoint=endpoint))
            continue

        field_changes = _compare_endpoint(previous, endpoint)
        changes.append(
            EndpointChange(
                kind="modified" if field_changes else "unchanged",
                endpoint=endpoint,
                previous=previous,
                field_changes=field_changes or None,
            )
        )

    for key, previous in remembered_by_key.items():
        if key not in desired_keys:
            changes.append(EndpointChange(kind="removed", endpoint=previous, previous=previous))

    plan = SyncPlan(changes=changes)
    logger.info(
        "planned_sync",
        unchanged=len(plan.unchanged),
        new=len(plan.new),
        modified=len(plan.modified),
        removed=len(plan.removed),
    )
    return plan


def stale_endpoints(remembered: Iterable[Endpoint], final: Iterable[Endpoint]) -> list[Endpoint]:
    """Remembered endpoints whose (path, METHOD) is absent from the final set."""
    final_keys = {endpoint.key for endpoint in final}
    return [endpoint for endpoint in remembered if endpoint.key not in final_keys]
