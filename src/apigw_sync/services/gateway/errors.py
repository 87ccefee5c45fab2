"""Reconciliation errors.

Validation errors (stale identity, conflicts, bad verbs, duplicates) are
raised before any remote mutation. Provisioning errors aggregate the
failures of independent sibling resources and are raised once every
sibling has been attempted.
"""

from __future__ import annotations

from typing import Any


class ReconcileError(Exception):
    """Base exception for reconciliation failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StaleIdentityError(ReconcileError):
    """A remembered or supplied REST API id no longer exists remotely.

    Never recovered automatically: creating a replacement would change the
    public invoke URL, so an operator has to remove state or the id.
    """

    def __init__(self, api_id: str, region: str | None = None) -> None:
        where = f" in {region}" if region else ""
        super().__init__(
            f"REST API '{api_id}' does not exist{where}. "
            "Remove the stale state or id before deploying again."
        )
        self.api_id = api_id
        self.region = region


class EndpointConflictError(ReconcileError):
    """A desired path already exists remotely but was not created by this gateway."""

    def __init__(self, path: str, endpoint_path: str | None = None) -> None:
        message = (
            f"path '{path}' already exists in the REST API "
            "and is not owned by this deployment"
        )
        if endpoint_path and endpoint_path != path:
            message += f" (required by endpoint '{endpoint_path}')"
        super().__init__(message)
        self.path = path
        self.endpoint_path = endpoint_path


class InvalidMethodError(ReconcileError):
    """An endpoint declares an unsupported HTTP verb."""

    def __init__(self, method: str, path: str, valid_methods: frozenset[str]) -> None:
        super().__init__(
            f"invalid method '{method}' for endpoint '{path}'; "
            f"expected one of: {', '.join(sorted(valid_methods))}"
        )
        self.method = method
        self.path = path


class DuplicateEndpointError(ReconcileError):
    """Two desired endpoints share the same (path, method)."""

    def __init__(self, path: str, method: str) -> None:
        super().__init__(f"endpoint {method} {path} is declared more than once")
        self.path = path
        self.method = method


class InvalidEndpointError(ReconcileError):
    """An endpoint is internally inconsistent."""

    def __init__(self, path: str, method: str, reason: str) -> None:
        super().__init__(f"endpoint {method} {path}: {reason}")
        self.path = path
        self.method = method
        self.reason = reason


class ProvisioningError(ReconcileError):
    """Failures collected across sibling resources of one pipeline stage.

    Attributes:
        failures: Mapping of the failed unit (authorizer name, endpoint key)
            to the exception it raised.
    """

    resource_kind = "resource"

    def __init__(self, failures: dict[Any, Exception]) -> None:
        details = "; ".join(f"{unit}: {error}" for unit, error in failures.items())
        super().__init__(f"{len(failures)} {self.resource_kind}(s) failed to provision: {details}")
        self.failures = failures


class AuthorizerProvisioningError(ProvisioningError):
    """One or more authorizers could not be created, updated, or granted."""

    resource_kind = "authorizer"


class IntegrationProvisioningError(ProvisioningError):
    """One or more integrations or their invoke permissions failed."""

    resource_kind = "integration"


class PublishExhaustedError(ReconcileError):
    """Publishing the deployment failed on every attempt.

    The configuration has been applied to the REST API but is not live.
    """

    def __init__(
        self,
        api_id: str,
        stage: str,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        message = f"deployment of '{api_id}' to stage '{stage}' failed after {attempts} attempt(s)"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)
        self.api_id = api_id
        self.stage = stage
        self.attempts = attempts
        self.last_error = last_error
