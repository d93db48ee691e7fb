"""Oplog router: GET /api/oplog: audit entries of a cluster over a day range, newest first."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from deploy_console.api.dependencies import get_audit_recorder
from deploy_console.domain.models.remote import SUCCESS
from deploy_console.domain.schemas.action import AuditEntryResponse
from deploy_console.governance.audit_logger import AuditRecorder

router = APIRouter()


@router.get("")
async def get_oplog(
    audit: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    cluster_code: Annotated[str, Query(alias="clusterCode", min_length=1)],
    start_time: Annotated[date, Query(alias="startTime")],
    end_time: Annotated[date, Query(alias="endTime")],
):
    """Inclusive day range; entries use camelCase keys with detail/extends/socket decoded."""
    records = await audit.query(cluster_code, start_time, end_time)
    entries = [
        AuditEntryResponse.model_validate(record).model_dump(mode="json", by_alias=True)
        for record in records
    ]
    return JSONResponse(content={"code": SUCCESS, "data": entries})
