"""DB-backed package repository (app_package table)."""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deploy_console.domain.models.cluster import AppPackageRecord
from deploy_console.infrastructure.database.models import AppPackage
from deploy_console.infrastructure.database.repository import AsyncRepository, as_utc


class DbPackageRepository(AsyncRepository[AppPackage]):
    """Implements PackageRepository protocol. Re-publishing an app id replaces its row."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(AppPackage, session_factory)

    async def save(self, record: AppPackageRecord) -> None:
        await self.upsert(
            {
                "cluster_code": record.cluster_code,
                "app_id": record.app_id,
                "app_name": record.app_name,
                "weight": record.weight,
                "pkg": record.package_path,
                "user": record.uploaded_by,
            },
            conflict_columns=("cluster_code", "app_id"),
        )

    async def delete(self, cluster_code: str, app_id: str) -> None:
        stmt = delete(AppPackage).where(
            AppPackage.cluster_code == cluster_code,
            AppPackage.app_id == app_id,
        )
        async with self._session_factory() as db:
            await db.execute(stmt)
            await db.commit()

    async def get(self, cluster_code: str, app_id: str) -> Optional[AppPackageRecord]:
        stmt = select(AppPackage).where(
            AppPackage.cluster_code == cluster_code,
            AppPackage.app_id == app_id,
        )
        async with self._session_factory() as db:
            row = (await db.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return AppPackageRecord(
            cluster_code=row.cluster_code,
            app_id=row.app_id,
            app_name=row.app_name,
            weight=row.weight,
            package_path=row.pkg,
            uploaded_by=row.user,
            created_at=as_utc(row.gmt_create),
        )
