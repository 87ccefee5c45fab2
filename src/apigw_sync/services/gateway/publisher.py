"""Deployment publishing."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from apigw_sync.integrations.aws.exceptions import (
    ProviderConflictError,
    ProviderConnectionError,
    ProviderThrottledError,
)
from apigw_sync.services.gateway.errors import PublishExhaustedError

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint
    from apigw_sync.services.gateway.context import SessionContext

logger = structlog.get_logger()

# Errors the control plane reports right after a burst of configuration changes.
TRANSIENT_PUBLISH_ERRORS = (
    ProviderThrottledError,
    ProviderConflictError,
    ProviderConnectionError,
)


class DeploymentPublisher:
    """Publishes the REST API configuration to its stage, with retries."""

    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx

    def publish(self, endpoints: Iterable[Endpoint]) -> str | None:
        """Create a deployment of the current configuration on the stage.

        Skipped only when the session changed nothing, the last successful
        deploy published exactly ``endpoints``, and the stage still exists.
        A deploy that failed to publish leaves remembered state behind, so
        the next run publishes again.

        Args:
            endpoints: Final endpoint set of this deploy.

        Returns:
            The deployment id, or None when publishing was skipped.

        Raises:
            PublishExhaustedError: If every attempt failed transiently.
            ProviderAPIError: On a non-transient provider error.
        """
        ctx = self.ctx
        stage = ctx.gateway.stage
        log = logger.bind(api_id=ctx.api_id, stage=stage)

        if (
            not ctx.mutated
            and self._matches_remembered(endpoints)
            and ctx.client.stage_exists(ctx.api_id, stage)
        ):
            log.info("publish_skipped", reason="no_changes")
            return None

        attempts = ctx.settings.publish_attempts
        wait = ctx.settings.publish_wait_seconds
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_incrementing(start=wait, increment=wait),
            retry=retry_if_exception_type(TRANSIENT_PUBLISH_ERRORS),
            sleep=ctx.sleep,
            before_sleep=self._log_retry,
        )

        log.info("publishing_deployment", attempts=attempts)
        try:
            deployment = retrying(ctx.client.create_deployment, ctx.api_id, stage)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            log.error("publish_exhausted", attempts=attempts, error=str(last_error))
            raise PublishExhaustedError(ctx.api_id, stage, attempts, last_error) from last_error

        deployment_id: str = deployment["id"]
        ctx.record("create", "deployment", deployment_id)
        log.info("published_deployment", deployment_id=deployment_id, url=ctx.gateway.url)
        return deployment_id

    def _matches_remembered(self, endpoints: Iterable[Endpoint]) -> bool:
        remembered = self.ctx.remembered
        if not remembered.url:
            return False
        published = {e.key: e.config_fingerprint() for e in remembered.endpoints}
        return published == {e.key: e.config_fingerprint() for e in endpoints}

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "publish_retrying",
            api_id=self.ctx.api_id,
            attempt=retry_state.attempt_number,
            error=str(error),
        )
