"""Validators for action requests. Pure functions, no infrastructure or DB access."""

from typing import Optional

from deploy_console.domain.exceptions import InvalidAppIdError, InvalidClusterCodeError
from deploy_console.domain.models.action import ACTION_CATALOG, ActionRequest

# App ids are interpolated into remote URL paths
_FORBIDDEN_APP_ID_CHARS = frozenset("/\\?#%")


def validate_cluster_code(cluster_code: Optional[str]) -> None:
    """Cluster code must be present and non-blank. Raises InvalidClusterCodeError."""
    if not cluster_code or not cluster_code.strip():
        raise InvalidClusterCodeError("clusterCode must not be empty")


def validate_app_id(app_id: Optional[str]) -> None:
    """App id must be non-empty and safe to place in a URL path. Raises InvalidAppIdError."""
    if not app_id or not app_id.strip():
        raise InvalidAppIdError("appId must not be empty")
    if any(ch in _FORBIDDEN_APP_ID_CHARS for ch in app_id) or app_id in (".", ".."):
        raise InvalidAppIdError(f"appId contains characters not allowed in a remote path: {app_id!r}")


def validate_action_request(request: ActionRequest) -> None:
    """
    Validate an ActionRequest before it enters the pipeline: cluster code always,
    app id for every app-scoped action. Raises domain exceptions on violation.
    """
    validate_cluster_code(request.cluster_code)
    if "{app_id}" in ACTION_CATALOG[request.action].path_template:
        validate_app_id(request.app_id)
