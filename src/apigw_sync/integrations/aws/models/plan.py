"""Sync plan models: how the desired endpoints differ from remembered ones."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from apigw_sync.integrations.aws.models.base import ApiModelBase
from apigw_sync.integrations.aws.models.endpoint import Endpoint, EndpointKey

ChangeKind = Literal["unchanged", "new", "modified", "removed"]


class EndpointChange(ApiModelBase):
    """Classification of a single endpoint.

    Attributes:
        kind: unchanged, new, modified, or removed.
        endpoint: The desired endpoint (the remembered one for removals).
        previous: The remembered endpoint, when there is one.
        field_changes: For modified endpoints, changed fields as (old, new).
    """

    kind: ChangeKind
    endpoint: Endpoint
    previous: Endpoint | None = None
    field_changes: dict[str, tuple[Any, Any]] | None = None

    @property
    def key(self) -> EndpointKey:
        """Natural key of the affected endpoint."""
        return self.endpoint.key


class SyncPlan(ApiModelBase):
    """Result of comparing desired endpoints against remembered ones."""

    changes: list[EndpointChange] = Field(default_factory=list)

    def _of_kind(self, kind: ChangeKind) -> list[EndpointChange]:
        return [change for change in self.changes if change.kind == kind]

    @property
    def unchanged(self) -> list[EndpointChange]:
        """Endpoints identical to the remembered ones."""
        return self._of_kind("unchanged")

    @property
    def new(self) -> list[EndpointChange]:
        """Endpoints not present in remembered state."""
        return self._of_kind("new")

    @property
    def modified(self) -> list[EndpointChange]:
        """Endpoints whose configuration changed."""
        return self._of_kind("modified")

    @property
    def removed(self) -> list[EndpointChange]:
        """Remembered endpoints absent from the desired set."""
        return self._of_kind("removed")

    @property
    def total_changes(self) -> int:
        """Number of new, modified, and removed endpoints."""
        return len(self.changes) - len(self.unchanged)

    @property
    def has_changes(self) -> bool:
        """Whether applying the plan changes anything."""
        return self.total_changes > 0
