"""DB-backed audit repository. Appends oplog rows; structured sub-fields stored as JSON text."""

import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deploy_console.domain.models.action import RiskLevel
from deploy_console.governance.audit_models import AuditRecord
from deploy_console.infrastructure.database.models import OpLog
from deploy_console.infrastructure.database.repository import AsyncRepository, as_utc

logger = logging.getLogger(__name__)


def _dump(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def _load(value: Optional[str], field: str, row_id: int) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("oplog_field_not_json", extra={"field": field, "oplog_id": row_id})
        return value


class DbAuditRepository(AsyncRepository[OpLog]):
    """Implements AuditRepository protocol. Rows are never updated."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(OpLog, session_factory)

    async def save(self, record: AuditRecord) -> None:
        await self.create(
            OpLog(
                client_id=record.client_id,
                op_name=record.op_name,
                op_type=record.op_type,
                op_log_level=record.risk_level.value,
                op_item=record.op_item,
                op_item_id=record.op_item_id,
                cluster_code=record.cluster_code,
                user=record.username,
                gmt_create=record.timestamp_created,
                detail=_dump(record.detail),
                extends=_dump(record.extends),
                socket=_dump(record.socket),
            )
        )

    async def list_between(self, cluster_code: str, start: datetime, end: datetime) -> List[AuditRecord]:
        stmt = (
            select(OpLog)
            .where(
                OpLog.cluster_code == cluster_code,
                OpLog.gmt_create >= start,
                OpLog.gmt_create <= end,
            )
            .order_by(OpLog.gmt_create.desc(), OpLog.id.desc())
        )
        async with self._session_factory() as db:
            rows = (await db.execute(stmt)).scalars().all()
        return [_to_record(row) for row in rows]


def _to_record(row: OpLog) -> AuditRecord:
    return AuditRecord(
        id=row.id,
        client_id=row.client_id,
        op_name=row.op_name,
        op_type=row.op_type,
        risk_level=RiskLevel(row.op_log_level),
        op_item=row.op_item,
        op_item_id=row.op_item_id,
        cluster_code=row.cluster_code,
        username=row.user,
        timestamp_created=as_utc(row.gmt_create),
        detail=_load(row.detail, "detail", row.id),
        extends=_load(row.extends, "extends", row.id),
        socket=_load(row.socket, "socket", row.id),
    )
