"""Append-only operation audit (oplog). Intent is recorded at pipeline start. No FastAPI."""

import asyncio
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Set, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from deploy_console.config.logging import OPLOG_LOGGER_NAME
from deploy_console.domain.models.action import ErrorKind, RiskLevel
from deploy_console.governance.audit_models import OP_ITEM_APP, OP_TYPE_PAGE_MODEL, AuditRecord
from deploy_console.governance.audit_repository import AuditRepository
from deploy_console.governance.exceptions import InvalidTimeRangeError, UnknownTimezoneError


def _as_date(value: Union[date, datetime], tz: ZoneInfo) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


class AuditRecorder:
    """
    Writes immutable audit records via repository.
    record() submits the write and returns at once; the write runs as a tracked
    background task whose failure is logged and never reaches the caller.
    """

    def __init__(
        self,
        repository: AuditRepository,
        logger: Optional[logging.Logger] = None,
        timezone_name: str = "UTC",
    ) -> None:
        self._repository = repository
        self._logger = logger or logging.getLogger(__name__)
        self._oplog = logging.getLogger(OPLOG_LOGGER_NAME)
        try:
            self._tz = ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise UnknownTimezoneError(f"Unknown audit time zone: {timezone_name}") from e
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(
        self,
        *,
        client_id: str,
        op_name: str,
        risk_level: RiskLevel,
        op_item_id: Optional[str],
        cluster_code: Optional[str],
        username: Optional[str],
        op_type: str = OP_TYPE_PAGE_MODEL,
        op_item: str = OP_ITEM_APP,
        detail: Optional[Any] = None,
        extends: Optional[Any] = None,
        socket: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        """Build the record (timestamp UTC), echo it to the oplog channel and submit the write."""
        record = AuditRecord(
            client_id=client_id or "-",
            op_name=op_name,
            op_type=op_type,
            risk_level=risk_level,
            op_item=op_item,
            op_item_id=op_item_id,
            cluster_code=cluster_code,
            username=username,
            timestamp_created=datetime.now(timezone.utc),
            detail=detail,
            extends=extends,
            socket=socket,
        )
        self._oplog.info(op_name, extra={"oplog": record.to_dict()})
        task = asyncio.get_running_loop().create_task(self._write(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return record

    async def _write(self, record: AuditRecord) -> None:
        try:
            await self._repository.save(record)
        except Exception as e:
            self._logger.error(
                "audit_write_failed",
                extra={
                    "error_kind": ErrorKind.AUDIT_WRITE_FAILED.value,
                    "op_name": record.op_name,
                    "op_item_id": record.op_item_id,
                    "cluster_code": record.cluster_code,
                    "error": str(e),
                },
            )

    async def drain(self) -> None:
        """Wait for every submitted write to finish (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def query(
        self,
        cluster_code: str,
        start: Union[date, datetime],
        end: Union[date, datetime],
    ) -> List[AuditRecord]:
        """
        Records of one cluster between the start of `start`'s day and the end of
        `end`'s day (inclusive, audit time zone), newest first.
        """
        start_day = _as_date(start, self._tz)
        end_day = _as_date(end, self._tz)
        if start_day > end_day:
            raise InvalidTimeRangeError(
                f"startTime {start_day.isoformat()} is after endTime {end_day.isoformat()}"
            )
        lower = datetime.combine(start_day, time.min, tzinfo=self._tz).astimezone(timezone.utc)
        upper = datetime.combine(end_day, time.max, tzinfo=self._tz).astimezone(timezone.utc)
        return await self._repository.list_between(cluster_code, lower, upper)
