"""Gateway identity, remembered state, and deploy output models."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from apigw_sync.integrations.aws.models.base import ApiModelBase
from apigw_sync.integrations.aws.models.endpoint import Endpoint


def build_url(api_id: str, region: str, stage: str, path: str = "") -> str:
    """Build the public invoke URL of a stage (or of a path within it).

    Args:
        api_id: REST API id.
        region: AWS region.
        stage: Stage name.
        path: Optional resource path appended to the stage URL.

    Returns:
        ``https://{api_id}.execute-api.{region}.amazonaws.com/{stage}{path}``
    """
    base = f"https://{api_id}.execute-api.{region}.amazonaws.com/{stage}"
    if path and path != "/":
        return f"{base}{path}"
    return base


class GatewayIdentity(ApiModelBase):
    """Identity of the REST API a session reconciles.

    Attributes:
        id: REST API id assigned by API Gateway.
        name: REST API name.
        description: REST API description.
        region: AWS region the API lives in.
        stage: Stage that deployments are published to.
        endpoint_types: Endpoint configuration types (EDGE, REGIONAL, PRIVATE).
        created: True when this session created the API (as opposed to
            adopting a remembered or caller-supplied id).
    """

    id: str
    name: str
    description: str = ""
    region: str
    stage: str
    endpoint_types: list[str] = Field(default_factory=lambda: ["EDGE"])
    created: bool = Field(default=False, exclude=True)

    @property
    def url(self) -> str:
        """Public invoke URL of the stage."""
        return build_url(self.id, self.region, self.stage)


class RememberedState(ApiModelBase):
    """Last successfully applied deployment, as persisted by the state store.

    ``id`` is only remembered for APIs this tool created; adopted APIs are
    re-resolved from configuration on every run.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str | None = None
    region: str | None = None
    stage: str | None = None
    url: str | None = None
    endpoints: list[Endpoint] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether nothing is remembered."""
        return not self.id and not self.name and not self.endpoints


class DeployOutputs(ApiModelBase):
    """Outputs returned by deploy and remove."""

    name: str | None = None
    id: str | None = None
    endpoints: list[Endpoint] = Field(default_factory=list)
    url: str | None = None
