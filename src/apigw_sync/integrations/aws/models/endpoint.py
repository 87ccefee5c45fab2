"""Endpoint models: the declared HTTP surface of a gateway.

An endpoint is identified by its natural key ``(path, METHOD)``. Remote
identifiers (``path_id``, ``method_id``, authorizer ``id``) are empty on
input and filled in by the provisioning stages.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from apigw_sync.integrations.aws.models.base import ApiModelBase

DEFAULT_IDENTITY_SOURCE = "method.request.header.Authorization"
DEFAULT_RESULT_TTL = 300

AuthorizationType = Literal["NONE", "AWS_IAM"]
EndpointKey = tuple[str, str]


def normalize_path(path: str) -> str:
    """Normalize a resource path.

    Adds the leading slash, drops trailing and duplicate slashes.

    Args:
        path: Raw path from configuration (e.g. "users//{id}/").

    Returns:
        Normalized path (e.g. "/users/{id}"); the root is "/".
    """
    segments = [segment for segment in path.strip().split("/") if segment]
    return "/" + "/".join(segments)


def function_name_from_arn(arn: str) -> str:
    """Extract the function name from a Lambda function ARN.

    Args:
        arn: ARN such as ``arn:aws:lambda:us-east-1:123456789012:function:fn``
            (an optional ``:alias`` suffix is dropped).

    Returns:
        The bare function name.
    """
    return arn.split(":function:", 1)[-1].split(":", 1)[0]


class FunctionTarget(ApiModelBase):
    """A backend function addressed by name or ARN."""

    function_name: str | None = None
    function_arn: str | None = None

    @model_validator(mode="after")
    def require_target(self) -> FunctionTarget:
        """Require at least one of function_name / function_arn."""
        if not self.function_name and not self.function_arn:
            raise ValueError("either functionName or functionArn is required")
        return self

    @property
    def target(self) -> str:
        """Return the ARN when known, else the function name."""
        return self.function_arn or self.function_name or ""


class EndpointIntegration(FunctionTarget):
    """Proxy integration from a method to its backend function."""


class EndpointAuthorizer(FunctionTarget):
    """Custom (TOKEN) authorizer backed by a function.

    Attributes:
        name: Logical authorizer name, unique within the gateway. Defaults
            to the backing function name.
        identity_source: Request header mapping the token is read from.
        result_ttl: Seconds the authorizer result is cached.
        id: Remote authorizer id, filled in during provisioning.
    """

    name: str | None = None
    identity_source: str = DEFAULT_IDENTITY_SOURCE
    result_ttl: int = Field(default=DEFAULT_RESULT_TTL, ge=0, le=3600)
    id: str | None = None

    @model_validator(mode="after")
    def default_name(self) -> EndpointAuthorizer:
        """Derive the name from the backing function when not given."""
        if not self.name:
            if self.function_name:
                self.name = self.function_name
            elif self.function_arn:
                self.name = function_name_from_arn(self.function_arn)
        return self

    def config_fingerprint(self) -> tuple[Any, ...]:
        """Return the fields that define the authorizer's remote configuration."""
        return (self.name, self.target, self.identity_source, self.result_ttl)


class Endpoint(ApiModelBase):
    """A single HTTP endpoint, desired or remembered.

    Attributes:
        path: Resource path (normalized, e.g. "/users/{id}").
        method: HTTP verb. Upper-cased and validated by the endpoint
            validator, not here, so invalid verbs surface as
            InvalidMethodError rather than a pydantic error.
        integration: Backend function the method invokes.
        authorizer: Optional custom authorizer.
        authorization: Authorization mode when no custom authorizer is set.
        api_key_required: Whether callers must send an API key.
        id: Stable internal identifier, kept across deployments.
        path_id: Remote resource id of ``path``.
        method_id: Remote identifier of the method binding.
        url: Public invoke URL of the endpoint.
    """

    path: str
    method: str
    integration: EndpointIntegration
    authorizer: EndpointAuthorizer | None = None
    authorization: AuthorizationType = "NONE"
    api_key_required: bool = False
    id: str | None = None
    path_id: str | None = None
    method_id: str | None = None
    url: str | None = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize the path."""
        return normalize_path(v)

    @property
    def key(self) -> EndpointKey:
        """Natural key of the endpoint: (path, METHOD)."""
        return (self.path, self.method.upper())

    @property
    def authorization_type(self) -> str:
        """Authorization type the remote method must carry."""
        return "CUSTOM" if self.authorizer else self.authorization

    def config_fingerprint(self) -> tuple[Any, ...]:
        """Return the declared configuration, excluding remote identifiers."""
        return (
            self.integration.target,
            self.authorizer.config_fingerprint() if self.authorizer else None,
            self.authorization_type,
            self.api_key_required,
        )
