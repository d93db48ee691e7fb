"""Domain schemas. Request/response and validation."""

from deploy_console.domain.schemas.action import (
    ActionResponse,
    AuditEntryResponse,
    ClusterActionBody,
)

__all__ = [
    "ActionResponse",
    "AuditEntryResponse",
    "ClusterActionBody",
]
