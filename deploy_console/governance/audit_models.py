"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from deploy_console.domain.models.action import RiskLevel

OP_TYPE_PAGE_MODEL = "PAGE_MODEL"
OP_ITEM_APP = "APP"


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable oplog entry: who (username, client_id), what (op_name, op_item_id),
    where (cluster_code), when (UTC), how risky (risk_level). Append-only.
    """

    client_id: str
    op_name: str
    op_type: str
    risk_level: RiskLevel
    op_item: str
    op_item_id: Optional[str]
    cluster_code: Optional[str]
    username: Optional[str]
    timestamp_created: datetime
    detail: Optional[Any] = None
    extends: Optional[Any] = None
    socket: Optional[Dict[str, Any]] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging."""
        return {
            "client_id": self.client_id,
            "op_name": self.op_name,
            "op_type": self.op_type,
            "risk_level": self.risk_level.value,
            "op_item": self.op_item,
            "op_item_id": self.op_item_id,
            "cluster_code": self.cluster_code,
            "username": self.username,
            "timestamp_created": self.timestamp_created.isoformat(),
            "detail": self.detail,
            "extends": self.extends,
            "socket": self.socket,
        }
