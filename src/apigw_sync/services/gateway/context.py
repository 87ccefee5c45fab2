"""Per-session reconciliation context.

Every pipeline stage receives the same SessionContext instead of reading
ambient state: the provider client, the resolved gateway identity, the
remembered state read at session start, and the settings. The context
also memoizes Lambda lookups and records every mutating call the session
issues.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from apigw_sync.integrations.aws.exceptions import ProviderConflictError

if TYPE_CHECKING:
    from apigw_sync.core.config.models import ReconcilerSettings
    from apigw_sync.integrations.aws.client import ApiGatewayClient
    from apigw_sync.integrations.aws.models.endpoint import FunctionTarget
    from apigw_sync.integrations.aws.models.gateway import GatewayIdentity, RememberedState

logger = structlog.get_logger()

LAMBDA_API_VERSION = "2015-03-31"


@dataclass(frozen=True)
class Mutation:
    """A mutating provider call issued during the session."""

    action: str
    resource: str
    identifier: str


def account_id_from_arn(arn: str) -> str:
    """Return the account id field of an ARN (``arn:aws:svc:region:ACCOUNT:...``)."""
    parts = arn.split(":")
    return parts[4] if len(parts) > 4 else ""


@dataclass
class SessionContext:
    """Explicit state shared by the stages of one deploy or remove session.

    Attributes:
        client: Provider client bound to the gateway's region.
        gateway: Identity of the REST API being reconciled.
        remembered: Remembered state as read at session start.
        settings: Reconciler settings.
        sleep: Blocking pause used by the settle stage and retry waits.
        mutations: Mutating calls issued so far, in completion order.
    """

    client: ApiGatewayClient
    gateway: GatewayIdentity
    remembered: RememberedState
    settings: ReconcilerSettings
    sleep: Callable[[float], None] = time.sleep
    mutations: list[Mutation] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _function_arns: dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _statement_ids: dict[str, set[str]] = field(default_factory=dict, init=False, repr=False)
    _grant_locks: dict[str, threading.Lock] = field(default_factory=dict, init=False, repr=False)

    @property
    def api_id(self) -> str:
        """REST API id of the session."""
        return self.gateway.id

    @property
    def region(self) -> str:
        """Region of the session."""
        return self.gateway.region

    @property
    def max_workers(self) -> int | None:
        """Thread cap for fan-out within a stage."""
        return self.settings.max_workers

    @property
    def mutated(self) -> bool:
        """Whether the session issued any mutating call."""
        return bool(self.mutations)

    def record(self, action: str, resource: str, identifier: str) -> None:
        """Record a mutating provider call."""
        with self._lock:
            self.mutations.append(Mutation(action, resource, identifier))

    def resolve_function_arn(self, target: FunctionTarget) -> str:
        """Return the ARN of a backend function, resolving names once per session."""
        if target.function_arn:
            return target.function_arn

        name = target.function_name or ""
        with self._lock:
            cached = self._function_arns.get(name)
        if cached:
            return cached

        arn = self.client.get_function_arn(name)
        with self._lock:
            self._function_arns[name] = arn
        return arn

    def invocation_uri(self, function_arn: str) -> str:
        """API Gateway URI that invokes a Lambda function."""
        return (
            f"arn:aws:apigateway:{self.region}:lambda:path/{LAMBDA_API_VERSION}"
            f"/functions/{function_arn}/invocations"
        )

    def execute_api_arn(self, function_arn: str, resource: str) -> str:
        """execute-api ARN of a resource of this REST API.

        The account id is taken from the function ARN: the REST API and its
        backend functions live in the same account.
        """
        account = account_id_from_arn(function_arn)
        return f"arn:aws:execute-api:{self.region}:{account}:{self.api_id}/{resource}"

    def _grant_lock(self, function_arn: str) -> threading.Lock:
        with self._lock:
            return self._grant_locks.setdefault(function_arn, threading.Lock())

    def grant_invoke(self, function_arn: str, statement_id: str, source_arn: str) -> bool:
        """Allow the REST API to invoke a function, once per statement id.

        Grants on the same function are serialized: Lambda rejects
        concurrent policy updates with the same error code it uses for
        duplicate statement ids.

        Args:
            function_arn: Function to grant invoke permission on.
            statement_id: Deterministic statement id of the grant.
            source_arn: execute-api ARN allowed to invoke the function.

        Returns:
            True if a new statement was added, False if it already existed.
        """
        with self._grant_lock(function_arn):
            known = self._statement_ids.get(function_arn)
            if known is None:
                known = self.client.get_permission_statement_ids(function_arn)
                self._statement_ids[function_arn] = known
            if statement_id in known:
                return False

            try:
                self.client.add_permission(function_arn, statement_id, source_arn)
            except ProviderConflictError:
                logger.warning(
                    "permission_already_granted",
                    function=function_arn,
                    statement_id=statement_id,
                )
                known.add(statement_id)
                return False

            known.add(statement_id)
            self.record("grant", "permission", statement_id)
            logger.info(
                "granted_invoke_permission",
                function=function_arn,
                statement_id=statement_id,
            )
            return True
