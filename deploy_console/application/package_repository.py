"""Package repository protocol. Application layer depends on this; infrastructure implements it."""

from typing import Optional, Protocol

from deploy_console.domain.models.cluster import AppPackageRecord


class PackageRepository(Protocol):
    """Persists package metadata, unique per (cluster_code, app_id)."""

    async def save(self, record: AppPackageRecord) -> None:
        """Insert, or replace the row with the same (cluster_code, app_id)."""
        ...

    async def delete(self, cluster_code: str, app_id: str) -> None:
        ...

    async def get(self, cluster_code: str, app_id: str) -> Optional[AppPackageRecord]:
        ...
