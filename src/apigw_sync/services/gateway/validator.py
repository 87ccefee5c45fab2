"""Endpoint validation.

Normalizes and checks the desired endpoints before anything is mutated:
verbs must be supported, natural keys unique, shared authorizers
consistent, and every existing remote path on an endpoint's segment chain
must belong to this deployment.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from apigw_sync.integrations.aws.models.gateway import build_url
from apigw_sync.services.gateway.errors import (
    DuplicateEndpointError,
    EndpointConflictError,
    InvalidEndpointError,
    InvalidMethodError,
)
from apigw_sync.utils.ids import generate_id

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import (
        Endpoint,
        EndpointAuthorizer,
        EndpointKey,
    )
    from apigw_sync.services.gateway.context import SessionContext

logger = structlog.get_logger()

ROOT_PATH = "/"
VALID_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ANY"})


def path_prefixes(path: str) -> list[str]:
    """Return every non-root prefix of a normalized path, shortest first.

    Example:
        >>> path_prefixes("/users/{id}/orders")
        ['/users', '/users/{id}', '/users/{id}/orders']
    """
    segments = [segment for segment in path.split("/") if segment]
    return ["/" + "/".join(segments[: i + 1]) for i in range(len(segments))]


def parent_path(path: str) -> str:
    """Return the parent of a normalized non-root path."""
    parent = path.rsplit("/", 1)[0]
    return parent or ROOT_PATH


def path_closure(paths: Iterable[str]) -> set[str]:
    """Return the given paths plus all of their prefixes."""
    closure: set[str] = set()
    for path in paths:
        closure.update(path_prefixes(path))
    return closure


def owned_paths(endpoints: Iterable[Endpoint]) -> set[str]:
    """Paths this deployment created: the segment chains of remembered endpoints."""
    return path_closure(endpoint.path for endpoint in endpoints) | {ROOT_PATH}


def normalize_endpoints(endpoints: Iterable[Endpoint]) -> list[Endpoint]:
    """Upper-case verbs and check them, key uniqueness, and authorizer consistency.

    Pure input validation: no provider calls.

    Args:
        endpoints: Desired endpoints as configured.

    Returns:
        Copies of the endpoints with upper-cased methods, in input order.

    Raises:
        InvalidMethodError: If a verb is not supported.
        DuplicateEndpointError: If two endpoints share (path, method).
        InvalidEndpointError: If endpoints declare the same authorizer name
            with different settings.
    """
    normalized: list[Endpoint] = []
    seen: set[EndpointKey] = set()
    authorizers: dict[str, EndpointAuthorizer] = {}

    for endpoint in endpoints:
        method = endpoint.method.strip().upper()
        if method not in VALID_METHODS:
            raise InvalidMethodError(endpoint.method, endpoint.path, VALID_METHODS)

        candidate = endpoint.model_copy(update={"method": method}, deep=True)
        if candidate.key in seen:
            raise DuplicateEndpointError(candidate.path, method)
        seen.add(candidate.key)

        if candidate.authorizer is not None:
            name = candidate.authorizer.name or ""
            declared = authorizers.setdefault(name, candidate.authorizer)
            if declared.config_fingerprint() != candidate.authorizer.config_fingerprint():
                raise InvalidEndpointError(
                    candidate.path,
                    method,
                    f"authorizer '{name}' is declared with conflicting settings",
                )

        normalized.append(candidate)

    return normalized


def validate_endpoints(ctx: SessionContext, endpoints: Iterable[Endpoint]) -> list[Endpoint]:
    """Validate desired endpoints against the remote REST API.

    A path segment may be reused only when it was created by this
    deployment (it lies on the segment chain of a remembered endpoint) or
    does not exist yet. Every path of a REST API this tool created is
    owned by it. The only remote call is a single resource listing.

    Args:
        ctx: Session context.
        endpoints: Desired endpoints as returned by ``normalize_endpoints``.

    Returns:
        The same endpoints annotated with a stable internal ``id``, the
        ``path_id`` of paths that already exist, and their public ``url``.

    Raises:
        EndpointConflictError: If a required path belongs to someone else.
    """
    normalized = list(endpoints)
    log = logger.bind(api_id=ctx.api_id)
    log.debug("validating_endpoints", count=len(normalized))

    remote = {resource["path"]: resource["id"] for resource in ctx.client.get_resources(ctx.api_id)}
    owned = owned_paths(ctx.remembered.endpoints)
    if ctx.remembered.id == ctx.api_id:
        owned |= remote.keys()
    remembered_by_key = {endpoint.key: endpoint for endpoint in ctx.remembered.endpoints}

    for endpoint in normalized:
        for prefix in path_prefixes(endpoint.path):
            if prefix in remote and prefix not in owned:
                log.error("endpoint_conflict", path=prefix, endpoint=endpoint.path)
                raise EndpointConflictError(prefix, endpoint.path)

    for endpoint in normalized:
        previous = remembered_by_key.get(endpoint.key)
        endpoint.id = previous.id if previous and previous.id else generate_id()
        endpoint.path_id = remote.get(endpoint.path)
        endpoint.method_id = None
        endpoint.url = build_url(ctx.api_id, ctx.region, ctx.gateway.stage, endpoint.path)

    log.info("validated_endpoints", count=len(normalized))
    return normalized
