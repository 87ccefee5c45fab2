"""Path (resource) provisioning."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from apigw_sync.integrations.aws.exceptions import ProviderConflictError
from apigw_sync.services.gateway.validator import ROOT_PATH, parent_path, path_closure
from apigw_sync.utils.concurrency import fan_out, raise_first_error

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint
    from apigw_sync.services.gateway.context import SessionContext

logger = structlog.get_logger()


def paths_by_depth(paths: Iterable[str]) -> dict[int, list[str]]:
    """Group non-root paths by segment count, sorted within each level."""
    levels: dict[int, list[str]] = defaultdict(list)
    for path in sorted(set(paths) - {ROOT_PATH}):
        levels[path.count("/")].append(path)
    return dict(sorted(levels.items()))


class PathProvisioner:
    """Creates every missing segment of the desired endpoint paths.

    Segments are created one depth level at a time: all missing segments
    of a level are created concurrently once their parents exist. Each
    distinct segment is created at most once per run, so endpoints sharing
    a prefix never race each other. A provider conflict on create means
    the segment appeared in the meantime and its id is adopted.
    """

    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx
        self.path_ids: dict[str, str] = {}

    def provision(self, endpoints: Iterable[Endpoint]) -> dict[str, str]:
        """Ensure every endpoint path exists and set ``path_id`` in place.

        Args:
            endpoints: Validated desired endpoints.

        Returns:
            Mapping of path to remote resource id for every known path.

        Raises:
            ProviderAPIError: On the first path that could not be created.
        """
        endpoints = list(endpoints)
        self._refresh()

        wanted = path_closure(endpoint.path for endpoint in endpoints)
        missing = [path for path in wanted if path not in self.path_ids]
        logger.info(
            "provisioning_paths",
            api_id=self.ctx.api_id,
            wanted=len(wanted),
            missing=len(missing),
        )

        for depth, level in paths_by_depth(missing).items():
            logger.debug("creating_path_level", depth=depth, count=len(level))
            outcomes = fan_out(self._create, level, self.ctx.max_workers)
            for path, path_id in zip(level, raise_first_error(outcomes), strict=True):
                self.path_ids[path] = path_id

        for endpoint in endpoints:
            endpoint.path_id = self.path_ids[endpoint.path]

        logger.info("provisioned_paths", api_id=self.ctx.api_id, created=len(missing))
        return dict(self.path_ids)

    def _refresh(self) -> None:
        resources = self.ctx.client.get_resources(self.ctx.api_id)
        self.path_ids.update({resource["path"]: resource["id"] for resource in resources})

    def _create(self, path: str) -> str:
        ctx = self.ctx
        parent_id = self.path_ids[parent_path(path)]
        path_part = path.rsplit("/", 1)[1]
        log = logger.bind(api_id=ctx.api_id, path=path)

        log.debug("creating_path", parent_id=parent_id, path_part=path_part)
        try:
            created = ctx.client.create_resource(ctx.api_id, parent_id, path_part)
        except ProviderConflictError:
            log.warning("path_already_exists")
            for resource in ctx.client.get_resources(ctx.api_id):
                if resource["path"] == path:
                    return str(resource["id"])
            raise

        ctx.record("create", "path", created["id"])
        log.info("created_path", path_id=created["id"])
        return str(created["id"])
