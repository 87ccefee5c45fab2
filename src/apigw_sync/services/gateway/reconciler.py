"""Gateway reconciler: the deploy, plan, and remove entry points.

Deploy runs a fixed pipeline, each stage finishing before the next starts:

    identity -> validate -> authorizers -> paths -> methods -> settle
    -> integrations -> prune -> publish

Remembered state is read once at the start and written once at the end of
a successful deploy (plus once right after a new REST API is created, so
its id survives a failure later in the run).
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from apigw_sync.core.config.models import DEFAULT_REGION, DeployConfig, ReconcilerSettings
from apigw_sync.integrations.aws.client import ApiGatewayClient
from apigw_sync.integrations.aws.config import AwsConnectionConfig
from apigw_sync.integrations.aws.exceptions import ProviderAPIError, ProviderNotFoundError
from apigw_sync.integrations.aws.models.gateway import (
    DeployOutputs,
    GatewayIdentity,
    RememberedState,
)
from apigw_sync.integrations.aws.models.plan import SyncPlan
from apigw_sync.services.gateway.authorizers import AuthorizerProvisioner
from apigw_sync.services.gateway.context import SessionContext
from apigw_sync.services.gateway.identity import lookup_identity, resolve_identity
from apigw_sync.services.gateway.integrations import IntegrationProvisioner
from apigw_sync.services.gateway.methods import MethodProvisioner
from apigw_sync.services.gateway.paths import PathProvisioner
from apigw_sync.services.gateway.planner import plan_sync
from apigw_sync.services.gateway.pruner import Pruner
from apigw_sync.services.gateway.publisher import DeploymentPublisher
from apigw_sync.services.gateway.state_store import StateStore
from apigw_sync.services.gateway.validator import normalize_endpoints, validate_endpoints

logger = structlog.get_logger()

ClientFactory = Callable[[str, AwsConnectionConfig], ApiGatewayClient]


def _default_client_factory(region: str, config: AwsConnectionConfig) -> ApiGatewayClient:
    return ApiGatewayClient(region, config)


class GatewayReconciler:
    """Makes a REST API match a declared set of endpoints.

    Example:
        >>> reconciler = GatewayReconciler(StateStore(Path("state")))
        >>> outputs = reconciler.deploy(DeployConfig(endpoints=[...]))
        >>> outputs.url
        'https://abc123.execute-api.us-east-1.amazonaws.com/dev'
    """

    def __init__(
        self,
        store: StateStore,
        settings: ReconcilerSettings | None = None,
        connection_config: AwsConnectionConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Remembered-state store of this deployment.
            settings: Pipeline settings.
            connection_config: Provider connection settings.
            client_factory: Builds a provider client for a region.
            sleep: Blocking pause used by the settle stage and publish retries.
        """
        self.store = store
        self.settings = settings or ReconcilerSettings()
        self.connection_config = connection_config or AwsConnectionConfig()
        self._client_factory = client_factory or _default_client_factory
        self._sleep = sleep
        self._log = logger.bind(state=str(store.path))

    def _client(self, region: str) -> ApiGatewayClient:
        return self._client_factory(region, self.connection_config)

    def deploy(self, config: DeployConfig) -> DeployOutputs:
        """Converge the REST API to ``config`` and publish it.

        Args:
            config: Desired state.

        Returns:
            Name, id, deployed endpoints (with remote ids and urls), and
            stage url.

        Raises:
            ReconcileError: On validation, provisioning, or publish failure.
            ProviderAPIError: On a provider failure in a fail-fast stage.
        """
        remembered = self.store.load()
        desired = normalize_endpoints(config.endpoints)

        client = self._client(config.region)
        gateway = resolve_identity(client, config, remembered)
        if gateway.created:
            remembered = remembered.model_copy(
                update={
                    "id": gateway.id,
                    "name": gateway.name,
                    "region": gateway.region,
                    "stage": gateway.stage,
                }
            )
            self.store.save(remembered)

        log = self._log.bind(api_id=gateway.id, stage=gateway.stage)
        log.info("deploying", endpoints=len(desired))

        ctx = SessionContext(
            client=client,
            gateway=gateway,
            remembered=remembered,
            settings=self.settings,
            sleep=self._sleep,
        )
        endpoints = validate_endpoints(ctx, desired)

        AuthorizerProvisioner(ctx).provision(endpoints)
        PathProvisioner(ctx).provision(endpoints)
        MethodProvisioner(ctx).provision(endpoints)
        self.settle(ctx)
        IntegrationProvisioner(ctx).provision(endpoints)
        Pruner(ctx).prune(remembered.endpoints, endpoints)
        DeploymentPublisher(ctx).publish(endpoints)

        self.store.save(
            RememberedState(
                id=remembered.id,
                name=gateway.name,
                region=gateway.region,
                stage=gateway.stage,
                url=gateway.url,
                endpoints=endpoints,
            )
        )
        log.info("deployed", endpoints=len(endpoints), mutations=len(ctx.mutations))
        return DeployOutputs(name=gateway.name, id=gateway.id, endpoints=endpoints, url=gateway.url)

    def settle(self, ctx: SessionContext) -> None:
        """Wait for method changes to propagate before integrations reference them."""
        seconds = self.settings.settle_seconds
        if seconds <= 0:
            return
        self._log.debug("settling", seconds=seconds)
        ctx.sleep(seconds)

    def plan(self, config: DeployConfig) -> SyncPlan:
        """Classify endpoints against remembered state without mutating anything.

        Ownership conflicts are checked when the REST API already exists.
        """
        remembered = self.store.load()
        endpoints = normalize_endpoints(config.endpoints)

        client = self._client(config.region)
        gateway = lookup_identity(client, config, remembered)
        if gateway is not None:
            ctx = SessionContext(
                client=client,
                gateway=gateway,
                remembered=remembered,
                settings=self.settings,
                sleep=self._sleep,
            )
            endpoints = validate_endpoints(ctx, endpoints)

        return plan_sync(endpoints, remembered.endpoints)

    def remove(self, config: DeployConfig | None = None) -> DeployOutputs:
        """Tear down what this deployment created and forget it.

        A REST API created by this tool is deleted as a whole. An adopted
        REST API (id from configuration) is kept; only the remembered
        authorizers, methods, and paths are deleted, in that order.
        Teardown is best-effort and the remembered state is cleared even
        when deletions fail.

        Returns:
            The outputs as last known before removal.
        """
        remembered = self.store.load()
        api_id = remembered.id or (config.id if config else None)
        outputs = DeployOutputs(
            name=remembered.name,
            id=api_id,
            endpoints=remembered.endpoints,
            url=remembered.url,
        )
        region = remembered.region or (config.region if config else DEFAULT_REGION)
        stage = remembered.stage or (config.stage if config else None)
        log = self._log.bind(api_id=api_id, region=region)

        try:
            if remembered.id:
                self._remove_gateway(self._client(region), remembered.id)
            elif api_id and remembered.endpoints:
                gateway = GatewayIdentity(
                    id=api_id,
                    name=remembered.name or api_id,
                    region=region,
                    stage=stage or "",
                )
                ctx = SessionContext(
                    client=self._client(region),
                    gateway=gateway,
                    remembered=remembered,
                    settings=self.settings,
                    sleep=self._sleep,
                )
                pruner = Pruner(ctx, best_effort=True)
                log.info("removing_endpoints", endpoints=len(remembered.endpoints))
                pruner.remove_authorizers(remembered.endpoints)
                pruner.remove_methods(remembered.endpoints)
                pruner.remove_paths(remembered.endpoints)
            else:
                log.info("nothing_to_remove")
        finally:
            self.store.clear()

        log.info("removed")
        return outputs

    def _remove_gateway(self, client: ApiGatewayClient, api_id: str) -> None:
        log = self._log.bind(api_id=api_id)
        log.info("deleting_gateway")
        try:
            client.delete_rest_api(api_id)
        except ProviderNotFoundError:
            log.warning("gateway_already_absent")
        except ProviderAPIError as e:
            log.warning("teardown_delete_failed", resource="gateway", error=str(e))
        else:
            log.info("deleted_gateway")
