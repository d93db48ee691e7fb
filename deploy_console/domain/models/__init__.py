"""Domain models. Pure business entities."""

from deploy_console.domain.models.action import (
    ACTION_CATALOG,
    RESERVED_APP_PATH_IDS,
    ActionDefinition,
    ActionRequest,
    ActionResult,
    ActionRun,
    ActionState,
    ActionType,
    ErrorKind,
    PackageUpload,
    RiskLevel,
)
from deploy_console.domain.models.cluster import (
    AppInfo,
    AppPackageRecord,
    ClusterEndpoint,
    ClusterSnapshot,
    parse_app_id,
)
from deploy_console.domain.models.remote import (
    MalformedResponse,
    RemoteOutcome,
    RemoteRejected,
    RemoteSuccess,
    TransportFailure,
)

__all__ = [
    "ACTION_CATALOG",
    "RESERVED_APP_PATH_IDS",
    "ActionDefinition",
    "ActionRequest",
    "ActionResult",
    "ActionRun",
    "ActionState",
    "ActionType",
    "AppInfo",
    "AppPackageRecord",
    "ClusterEndpoint",
    "ClusterSnapshot",
    "ErrorKind",
    "MalformedResponse",
    "PackageUpload",
    "RemoteOutcome",
    "RemoteRejected",
    "RemoteSuccess",
    "RiskLevel",
    "TransportFailure",
    "parse_app_id",
]
