"""Snapshot repository protocol. Application layer depends on this; infrastructure implements it."""

from typing import Optional, Protocol

from deploy_console.domain.models.cluster import ClusterSnapshot


class SnapshotRepository(Protocol):
    """Stores cluster snapshots; the newest per cluster is current."""

    async def save(self, snapshot: ClusterSnapshot) -> ClusterSnapshot:
        ...

    async def latest(self, cluster_code: str) -> Optional[ClusterSnapshot]:
        ...
