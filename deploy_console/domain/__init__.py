"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from deploy_console.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InvalidAppIdError,
    InvalidClusterCodeError,
    InvalidStateTransitionError,
)
from deploy_console.domain.models import ActionRequest, ActionResult, ActionType, RiskLevel
from deploy_console.domain.schemas import (
    ActionResponse,
    AuditEntryResponse,
    ClusterActionBody,
)
from deploy_console.domain.validators import (
    validate_action_request,
    validate_app_id,
    validate_cluster_code,
)

__all__ = [
    "ActionRequest",
    "ActionResponse",
    "ActionResult",
    "ActionType",
    "AuditEntryResponse",
    "ClusterActionBody",
    "DomainError",
    "DomainValidationError",
    "InvalidAppIdError",
    "InvalidClusterCodeError",
    "InvalidStateTransitionError",
    "RiskLevel",
    "validate_action_request",
    "validate_app_id",
    "validate_cluster_code",
]
