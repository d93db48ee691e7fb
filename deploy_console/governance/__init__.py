"""Governance: operation audit (oplog) recording and compliance queries. No FastAPI."""

from deploy_console.governance.audit_logger import AuditRecorder
from deploy_console.governance.audit_models import AuditRecord
from deploy_console.governance.exceptions import GovernanceError, InvalidTimeRangeError

__all__ = [
    "AuditRecord",
    "AuditRecorder",
    "GovernanceError",
    "InvalidTimeRangeError",
]
