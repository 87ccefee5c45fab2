"""Method provisioning."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from apigw_sync.integrations.aws.exceptions import ProviderNotFoundError
from apigw_sync.utils.concurrency import fan_out, raise_first_error

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint
    from apigw_sync.services.gateway.context import SessionContext

logger = structlog.get_logger()


def _replace(path: str, value: str) -> dict[str, str]:
    return {"op": "replace", "path": path, "value": value}


def method_id(path_id: str, method: str) -> str:
    """Identifier of a method binding: methods are addressed by (resource, verb)."""
    return f"{path_id}/{method.upper()}"


class MethodProvisioner:
    """Binds each endpoint's verb to its path with the declared authorization.

    Existing methods are patched in place when their authorization drifted,
    so the integration behind them survives. Must run after paths and
    authorizers have been provisioned.
    """

    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx

    def provision(self, endpoints: Iterable[Endpoint]) -> list[Endpoint]:
        """Create or update every method and set ``method_id`` in place.

        Raises:
            ProviderAPIError: On the first method that could not be applied.
        """
        endpoints = list(endpoints)
        logger.info("provisioning_methods", api_id=self.ctx.api_id, count=len(endpoints))
        raise_first_error(fan_out(self._ensure, endpoints, self.ctx.max_workers))
        logger.info("provisioned_methods", api_id=self.ctx.api_id, count=len(endpoints))
        return endpoints

    def _ensure(self, endpoint: Endpoint) -> None:
        ctx = self.ctx
        path_id = endpoint.path_id or ""
        verb = endpoint.method
        authorizer_id = endpoint.authorizer.id if endpoint.authorizer else None
        log = logger.bind(api_id=ctx.api_id, path=endpoint.path, method=verb)

        try:
            existing = ctx.client.get_method(ctx.api_id, path_id, verb)
        except ProviderNotFoundError:
            existing = None

        if existing is None:
            log.info("creating_method", authorization=endpoint.authorization_type)
            ctx.client.put_method(
                ctx.api_id,
                path_id,
                verb,
                endpoint.authorization_type,
                authorizer_id=authorizer_id,
                api_key_required=endpoint.api_key_required,
            )
            ctx.record("create", "method", method_id(path_id, verb))
            log.info("created_method")
        else:
            patches = self._drift(endpoint, authorizer_id, existing)
            if patches:
                log.info("updating_method", fields=len(patches))
                ctx.client.update_method(ctx.api_id, path_id, verb, patches)
                ctx.record("update", "method", method_id(path_id, verb))
            else:
                log.debug("method_up_to_date")

        endpoint.method_id = method_id(path_id, verb)

    @staticmethod
    def _drift(
        endpoint: Endpoint,
        authorizer_id: str | None,
        existing: dict[str, Any],
    ) -> list[dict[str, str]]:
        patches = []
        if existing.get("authorizationType") != endpoint.authorization_type:
            patches.append(_replace("/authorizationType", endpoint.authorization_type))
        if authorizer_id and existing.get("authorizerId") != authorizer_id:
            patches.append(_replace("/authorizerId", authorizer_id))
        if bool(existing.get("apiKeyRequired", False)) != endpoint.api_key_required:
            patches.append(_replace("/apiKeyRequired", str(endpoint.api_key_required).lower()))
        return patches
