"""Removal of stale sub-resources.

Used both after provisioning (fail-fast, what the final endpoint set no
longer needs) and by teardown (best-effort, every remembered endpoint).
Deletion order is fixed: authorizers, then methods, then paths.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import structlog

from apigw_sync.integrations.aws.exceptions import ProviderAPIError, ProviderNotFoundError
from apigw_sync.services.gateway.planner import stale_endpoints
from apigw_sync.services.gateway.validator import ROOT_PATH, parent_path, path_closure
from apigw_sync.utils.concurrency import fan_out, raise_first_error

if TYPE_CHECKING:
    from apigw_sync.integrations.aws.models.endpoint import Endpoint
    from apigw_sync.services.gateway.context import SessionContext

logger = structlog.get_logger()


class Pruner:
    """Deletes authorizers, methods, and paths no surviving endpoint needs.

    Attributes:
        ctx: Session context.
        best_effort: When True, provider errors are logged and swallowed
            per resource instead of raised.
    """

    def __init__(self, ctx: SessionContext, *, best_effort: bool = False) -> None:
        self.ctx = ctx
        self.best_effort = best_effort
        self._remote_paths: dict[str, str] | None = None

    def prune(self, remembered: Iterable[Endpoint], survivors: Iterable[Endpoint] = ()) -> None:
        """Remove everything the remembered endpoints used that survivors do not.

        Methods and paths are pruned for remembered endpoints whose key left
        the final set. Authorizers are pruned by name, so one dropped from a
        kept endpoint is removed as well.

        Args:
            remembered: Endpoints of the last successful deploy.
            survivors: Endpoints that remain deployed.
        """
        remembered = list(remembered)
        survivors = list(survivors)
        stale = stale_endpoints(remembered, survivors)

        logger.info(
            "pruning_endpoints",
            api_id=self.ctx.api_id,
            stale=len(stale),
            best_effort=self.best_effort,
        )
        authorizers = self.remove_authorizers(remembered, survivors)
        self.remove_methods(stale)
        self.remove_paths(stale, survivors)
        logger.info(
            "pruned_endpoints",
            api_id=self.ctx.api_id,
            stale=len(stale),
            authorizers=len(authorizers),
        )

    def remove_authorizers(
        self,
        endpoints: Iterable[Endpoint],
        survivors: Iterable[Endpoint] = (),
    ) -> list[str]:
        """Delete authorizers referenced by ``endpoints`` but by no survivor.

        Returns:
            Names of the authorizers targeted for deletion.
        """
        in_use = {e.authorizer.name for e in survivors if e.authorizer is not None}
        targets: dict[str, str | None] = {}
        for endpoint in endpoints:
            authorizer = endpoint.authorizer
            if authorizer is None or authorizer.name in in_use:
                continue
            name = authorizer.name or ""
            targets[name] = targets.get(name) or authorizer.id

        if not targets:
            return []

        if any(authorizer_id is None for authorizer_id in targets.values()):
            remote = self._guard("list_authorizers", self._authorizer_ids)
            for name, authorizer_id in targets.items():
                if authorizer_id is None and remote:
                    targets[name] = remote.get(name)

        def _remove(name: str) -> None:
            authorizer_id = targets[name]
            if authorizer_id is None:
                logger.debug("authorizer_already_absent", name=name)
                return
            self._delete(
                "authorizer",
                authorizer_id,
                self.ctx.client.delete_authorizer,
                self.ctx.api_id,
                authorizer_id,
            )

        self._run(_remove, list(targets))
        return list(targets)

    def remove_methods(self, stale: Iterable[Endpoint]) -> list[Endpoint]:
        """Delete the method bindings of stale endpoints.

        Returns:
            Endpoints whose method was targeted for deletion.
        """
        stale = list(stale)
        if not stale:
            return []

        targets: list[tuple[Endpoint, str]] = []
        for endpoint in stale:
            path_id = endpoint.path_id or self._path_ids().get(endpoint.path)
            if path_id is None:
                logger.debug("method_path_absent", path=endpoint.path, method=endpoint.method)
                continue
            targets.append((endpoint, path_id))

        def _remove(target: tuple[Endpoint, str]) -> None:
            endpoint, path_id = target
            method = endpoint.method.upper()
            self._delete(
                "method",
                f"{path_id}/{method}",
                self.ctx.client.delete_method,
                self.ctx.api_id,
                path_id,
                method,
            )

        self._run(_remove, targets)
        return [endpoint for endpoint, _ in targets]

    def remove_paths(
        self,
        stale: Iterable[Endpoint],
        survivors: Iterable[Endpoint] = (),
    ) -> list[str]:
        """Delete path segments no surviving endpoint lies on.

        Only the top-most unused segments are deleted: removing a resource
        removes its children with it.

        Returns:
            Paths targeted for deletion.
        """
        needed = path_closure(endpoint.path for endpoint in survivors)
        candidates = path_closure(endpoint.path for endpoint in stale) - needed - {ROOT_PATH}
        tops = sorted(path for path in candidates if parent_path(path) not in candidates)
        if not tops:
            return []

        known = {endpoint.path: endpoint.path_id for endpoint in stale if endpoint.path_id}
        known.update(self._path_ids())

        def _remove(path: str) -> None:
            path_id = known.get(path)
            if path_id is None:
                logger.debug("path_already_absent", path=path)
                return
            self._delete(
                "path",
                path_id,
                self.ctx.client.delete_resource,
                self.ctx.api_id,
                path_id,
            )

        self._run(_remove, tops)
        return tops

    def _authorizer_ids(self) -> dict[str, str]:
        return {a["name"]: a["id"] for a in self.ctx.client.get_authorizers(self.ctx.api_id)}

    def _path_ids(self) -> dict[str, str]:
        if self._remote_paths is None:
            resources = self._guard(
                "list_paths",
                lambda: self.ctx.client.get_resources(self.ctx.api_id),
            )
            self._remote_paths = {r["path"]: r["id"] for r in resources or []}
        return self._remote_paths

    def _run[T](self, func: Callable[[T], None], items: list[T]) -> None:
        raise_first_error(fan_out(func, items, self.ctx.max_workers))

    def _guard[R](self, operation: str, func: Callable[[], R]) -> R | None:
        try:
            return func()
        except ProviderAPIError as e:
            if not self.best_effort:
                raise
            logger.warning("teardown_step_failed", operation=operation, error=str(e))
            return None

    def _delete(self, resource: str, identifier: str, call: Callable[..., Any], *args: Any) -> None:
        log = logger.bind(api_id=self.ctx.api_id, resource=resource, id=identifier)
        try:
            call(*args)
        except ProviderNotFoundError:
            log.warning("resource_already_absent")
            return
        except ProviderAPIError as e:
            if not self.best_effort:
                raise
            log.warning("teardown_delete_failed", error=str(e))
            return

        self.ctx.record("delete", resource, identifier)
        log.info("deleted_resource")
