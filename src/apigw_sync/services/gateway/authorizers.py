"""Authorizer provisioning."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from apigw_sync.services.gateway.errors import AuthorizerProvisioningError
from apigw_sync.utils.concurrency import fan_out
from apigw_sync.utils.ids import statement_id

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint, EndpointAuthorizer
    from apigw_sync.services.gateway.context import SessionContext

logger = structlog.get_logger()


def authorizer_statement_id(api_id: str, name: str, authorizer_id: str) -> str:
    """Deterministic permission statement id of an authorizer grant.

    The grant is scoped to one remote authorizer id, so a re-created
    authorizer gets a new statement instead of reusing a stale one.
    """
    return statement_id("apigw", api_id, "authorizer", name, authorizer_id)


def _replace(path: str, value: Any) -> dict[str, str]:
    return {"op": "replace", "path": path, "value": str(value)}


class AuthorizerProvisioner:
    """Ensures every declared authorizer exists remotely with matching settings.

    Authorizers are shared by name: endpoints declaring the same name use a
    single remote authorizer. Each distinct authorizer is provisioned
    concurrently and independently; failures are collected and raised
    together once all of them have been attempted.
    """

    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx

    def provision(self, endpoints: Iterable[Endpoint]) -> dict[str, str]:
        """Create or update authorizers and set their ids on the endpoints.

        Args:
            endpoints: Validated desired endpoints. Their ``authorizer.id``
                is filled in place.

        Returns:
            Mapping of authorizer name to remote authorizer id.

        Raises:
            AuthorizerProvisioningError: If any authorizer failed.
        """
        endpoints = list(endpoints)
        declared: dict[str, EndpointAuthorizer] = {}
        for endpoint in endpoints:
            if endpoint.authorizer is not None:
                declared.setdefault(endpoint.authorizer.name or "", endpoint.authorizer)

        if not declared:
            return {}

        logger.info("provisioning_authorizers", api_id=self.ctx.api_id, count=len(declared))
        remote = {item["name"]: item for item in self.ctx.client.get_authorizers(self.ctx.api_id)}

        outcomes = fan_out(
            lambda authorizer: self._ensure(authorizer, remote.get(authorizer.name or "")),
            list(declared.values()),
            self.ctx.max_workers,
        )

        ids: dict[str, str] = {}
        failures: dict[str, Exception] = {}
        for outcome in outcomes:
            name = outcome.item.name or ""
            if outcome.error is not None:
                logger.error("authorizer_failed", name=name, error=str(outcome.error))
                failures[name] = outcome.error
            elif outcome.value is not None:
                ids[name] = outcome.value

        for endpoint in endpoints:
            if endpoint.authorizer is not None:
                endpoint.authorizer.id = ids.get(endpoint.authorizer.name or "")

        if failures:
            raise AuthorizerProvisioningError(failures)

        logger.info("provisioned_authorizers", api_id=self.ctx.api_id, count=len(ids))
        return ids

    def _ensure(self, authorizer: EndpointAuthorizer, existing: dict[str, Any] | None) -> str:
        ctx = self.ctx
        name = authorizer.name or ""
        function_arn = ctx.resolve_function_arn(authorizer)
        uri = ctx.invocation_uri(function_arn)
        log = logger.bind(api_id=ctx.api_id, authorizer=name)

        if existing is None:
            log.info("creating_authorizer")
            created = ctx.client.create_authorizer(
                ctx.api_id,
                name,
                uri,
                authorizer.identity_source,
                authorizer.result_ttl,
            )
            authorizer_id: str = created["id"]
            ctx.record("create", "authorizer", authorizer_id)
            log.info("created_authorizer", authorizer_id=authorizer_id)
        else:
            authorizer_id = existing["id"]
            patches = self._drift(authorizer, uri, existing)
            if patches:
                log.info("updating_authorizer", authorizer_id=authorizer_id, fields=len(patches))
                ctx.client.update_authorizer(ctx.api_id, authorizer_id, patches)
                ctx.record("update", "authorizer", authorizer_id)
            else:
                log.debug("authorizer_up_to_date", authorizer_id=authorizer_id)

        ctx.grant_invoke(
            function_arn,
            authorizer_statement_id(ctx.api_id, name, authorizer_id),
            ctx.execute_api_arn(function_arn, f"authorizers/{authorizer_id}"),
        )
        return authorizer_id

    @staticmethod
    def _drift(
        authorizer: EndpointAuthorizer,
        uri: str,
        existing: dict[str, Any],
    ) -> list[dict[str, str]]:
        patches = []
        if existing.get("authorizerUri") != uri:
            patches.append(_replace("/authorizerUri", uri))
        if existing.get("identitySource") != authorizer.identity_source:
            patches.append(_replace("/identitySource", authorizer.identity_source))
        if existing.get("authorizerResultTtlInSeconds") != authorizer.result_ttl:
            patches.append(_replace("/authorizerResultTtlInSeconds", authorizer.result_ttl))
        return patches
