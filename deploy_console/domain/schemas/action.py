"""Pydantic schemas for the console API. Strict validation, no DB or infrastructure."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deploy_console.domain.models.action import RiskLevel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ClusterActionBody(BaseModel):
    """JSON body of app-scoped action routes."""

    cluster_code: str = Field(..., alias="clusterCode", min_length=1, description="Target cluster code")

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ActionResponse(BaseModel):
    """Every action answers {code, message?, data?}; code is SUCCESS or an error code."""

    code: str
    message: Optional[str] = None
    data: Any = None


class AuditEntryResponse(BaseModel):
    """Audit record as exposed on read: camelCase keys, structured sub-fields decoded."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: Optional[int] = None
    client_id: str
    op_name: str
    op_type: str
    risk_level: RiskLevel
    op_item: str
    op_item_id: Optional[str] = None
    cluster_code: Optional[str] = None
    username: Optional[str] = None
    timestamp_created: datetime
    detail: Optional[Any] = None
    extends: Optional[Any] = None
    socket: Optional[Dict[str, Any]] = None
