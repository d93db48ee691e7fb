"""DB-backed snapshot repository (cluster_snapshot table)."""

import json
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deploy_console.domain.models.cluster import ClusterSnapshot
from deploy_console.infrastructure.database.models import ClusterSnapshotRow
from deploy_console.infrastructure.database.repository import AsyncRepository, as_utc


class DbSnapshotRepository(AsyncRepository[ClusterSnapshotRow]):
    """Implements SnapshotRepository protocol. Each save inserts; latest() reads the newest row."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(ClusterSnapshotRow, session_factory)

    async def save(self, snapshot: ClusterSnapshot) -> ClusterSnapshot:
        row = await self.create(
            ClusterSnapshotRow(
                cluster_code=snapshot.cluster_code,
                info=json.dumps({"apps": snapshot.apps, "ips": snapshot.ips}, default=str),
            )
        )
        return _to_snapshot(row)

    async def latest(self, cluster_code: str) -> Optional[ClusterSnapshot]:
        stmt = (
            select(ClusterSnapshotRow)
            .where(ClusterSnapshotRow.cluster_code == cluster_code)
            .order_by(ClusterSnapshotRow.gmt_create.desc(), ClusterSnapshotRow.id.desc())
            .limit(1)
        )
        async with self._session_factory() as db:
            row = (await db.execute(stmt)).scalar_one_or_none()
        return _to_snapshot(row) if row is not None else None


def _to_snapshot(row: ClusterSnapshotRow) -> ClusterSnapshot:
    info = json.loads(row.info)
    return ClusterSnapshot(
        cluster_code=row.cluster_code,
        apps=info.get("apps", []),
        ips=info.get("ips", []),
        created_at=as_utc(row.gmt_create),
    )
