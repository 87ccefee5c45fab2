"""Integration provisioning and invoke permissions."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from apigw_sync.integrations.aws.exceptions import ProviderNotFoundError
from apigw_sync.services.gateway.errors import IntegrationProvisioningError
from apigw_sync.utils.concurrency import fan_out
from apigw_sync.utils.ids import statement_id

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint
    from apigw_sync.services.gateway.context import SessionContext
logger = structlog.get_logger()

PROXY_INTEGRATION_TYPE = "AWS_PROXY"
_PATH_PARAMETER = re.compile(r"\{[^/]+\}")


def integration_statement_id(api_id: str, method: str, path: str) -> str:
    """Deterministic permission statement id of an endpoint's invoke grant."""
    return statement_id("apigw", api_id, method.upper(), path)


def method_resource(method: str, path: str) -> str:
    """execute-api resource of a method: ``*/{VERB}{path}``.

    ``ANY`` becomes ``*`` and path parameters become ``*`` so the grant
    matches every concrete request routed to the method.
    """
    verb = "*" if method.upper() == "ANY" else method.upper()
    return f"*/{verb}{_PATH_PARAMETER.sub('*', path)}"


class IntegrationProvisioner:
    """Binds each method to its backend function and grants invoke permission.

    Endpoints are handled concurrently. A failing endpoint never stops its
    siblings; every failure is reported together afterwards.
    """

    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx

    def provision(self, endpoints: Iterable[Endpoint]) -> list[Endpoint]:
        """Put missing or drifted integrations and grant invoke permissions.

        Raises:
            IntegrationProvisioningError: If any endpoint failed, keyed by
                "METHOD path".
        """
        endpoints = list(endpoints)
        logger.info("provisioning_integrations", api_id=self.ctx.api_id, count=len(endpoints))

        outcomes = fan_out(self._ensure, endpoints, self.ctx.max_workers)
        failures: dict[str, Exception] = {}
        for outcome in outcomes:
            if outcome.error is not None:
                unit = f"{outcome.item.method} {outcome.item.path}"
                logger.error("integration_failed", endpoint=unit, error=str(outcome.error))
                failures[unit] = outcome.error

        if failures:
            raise IntegrationProvisioningError(failures)

        logger.info("provisioned_integrations", api_id=self.ctx.api_id, count=len(endpoints))
        return endpoints

    def _ensure(self, endpoint: Endpoint) -> None:
        ctx = self.ctx
        path_id = endpoint.path_id or ""
        function_arn = ctx.resolve_function_arn(endpoint.integration)
        uri = ctx.invocation_uri(function_arn)
        log = logger.bind(api_id=ctx.api_id, path=endpoint.path, method=endpoint.method)

        try:
            existing = ctx.client.get_integration(ctx.api_id, path_id, endpoint.method)
        except ProviderNotFoundError:
            existing = None

        if (
            existing is None
            or existing.get("type") != PROXY_INTEGRATION_TYPE
            or existing.get("uri") != uri
        ):
            log.info("putting_integration", function=function_arn)
            ctx.client.put_integration(ctx.api_id, path_id, endpoint.method, uri)
            ctx.record("put", "integration", f"{path_id}/{endpoint.method}")
        else:
            log.debug("integration_up_to_date")

        ctx.grant_invoke(
            function_arn,
            integration_statement_id(ctx.api_id, endpoint.method, endpoint.path),
            ctx.execute_api_arn(function_arn, method_resource(endpoint.method, endpoint.path)),
        )
