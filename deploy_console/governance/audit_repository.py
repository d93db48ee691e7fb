"""Audit repository protocol. Governance layer depends on this; infrastructure implements it."""

from datetime import datetime
from typing import List, Protocol

from deploy_console.governance.audit_models import AuditRecord


class AuditRepository(Protocol):
    """Protocol for persisting and querying immutable audit records."""

    async def save(self, record: AuditRecord) -> None:
        """Append an immutable audit record. Must not allow mutation."""
        ...

    async def list_between(
        self,
        cluster_code: str,
        start: datetime,
        end: datetime,
    ) -> List[AuditRecord]:
        """Records of one cluster with start <= timestamp_created <= end, newest first."""
        ...
