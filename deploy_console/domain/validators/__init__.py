"""Domain validators. Pure validation functions."""

from deploy_console.domain.validators.action_validator import (
    validate_action_request,
    validate_app_id,
    validate_cluster_code,
)

__all__ = [
    "validate_action_request",
    "validate_app_id",
    "validate_cluster_code",
]
