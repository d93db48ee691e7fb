"""Capture and persist a cluster's app composition after a state-mutating action."""

import logging
from typing import Optional

from deploy_console.application.cluster_state import fetch_cluster_apps
from deploy_console.application.endpoint_resolver import EndpointResolver
from deploy_console.application.exceptions import ActionError, SnapshotFailedError
from deploy_console.application.remote_caller import RemoteCaller
from deploy_console.application.snapshot_repository import SnapshotRepository
from deploy_console.domain.models.cluster import ClusterSnapshot


class SnapshotService:
    """
    Every failure (resolution, remote read, storage) surfaces as SnapshotFailedError
    so callers can tell stale bookkeeping apart from a failed remote action.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        remote: RemoteCaller,
        repository: SnapshotRepository,
        timeout_ms: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._resolver = resolver
        self._remote = remote
        self._repository = repository
        self._timeout_ms = timeout_ms
        self._logger = logger or logging.getLogger(__name__)

    async def capture_and_persist(self, cluster_code: str) -> ClusterSnapshot:
        try:
            endpoint = self._resolver.resolve(cluster_code)
            view = await fetch_cluster_apps(self._remote, endpoint, self._timeout_ms)
        except ActionError as e:
            self._logger.error(
                "snapshot_capture_failed",
                extra={"cluster_code": cluster_code, "code": e.code, "error": e.message},
            )
            raise SnapshotFailedError(f"snapshot of cluster {cluster_code} failed: {e.message or e.code}") from e

        snapshot = ClusterSnapshot(cluster_code=cluster_code, apps=view["apps"], ips=view["ips"])
        try:
            saved = await self._repository.save(snapshot)
        except Exception as e:
            self._logger.error(
                "snapshot_save_failed",
                extra={"cluster_code": cluster_code, "error": str(e)},
            )
            raise SnapshotFailedError(f"save snapshot of cluster {cluster_code} failed: {e}") from e

        self._logger.info(
            "snapshot_saved",
            extra={"cluster_code": cluster_code, "apps": len(snapshot.apps)},
        )
        return saved

    async def latest(self, cluster_code: str) -> Optional[ClusterSnapshot]:
        return await self._repository.latest(cluster_code)
