"""Base models shared by all API Gateway reconciliation models.

Deployment configuration and persisted state use camelCase keys
(``pathId``, ``functionName``...), while Python code uses snake_case
attributes. The base class wires the alias generator once so every model
accepts both spellings and serializes back to camelCase.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModelBase(BaseModel):
    """Base class for endpoint, gateway, and plan models."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a camelCase dictionary without unset (None) values.

        Returns:
            Dictionary suitable for state files and deploy outputs.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
