# Application layer: services that orchestrate domain and infrastructure.

from deploy_console.application.action_orchestrator import ActionOrchestrator
from deploy_console.application.endpoint_resolver import EndpointResolver
from deploy_console.application.exceptions import (
    ActionError,
    ApplicationError,
    EndpointNotFoundError,
    PackageEmptyError,
    PersistenceFailedError,
    RemoteMalformedResponseError,
    RemoteRejectedError,
    RemoteTransportError,
    SnapshotFailedError,
    UploadFailedError,
)
from deploy_console.application.package_store import PackageStore, ReceivedPackage
from deploy_console.application.snapshot_service import SnapshotService

__all__ = [
    "ActionError",
    "ActionOrchestrator",
    "ApplicationError",
    "EndpointNotFoundError",
    "EndpointResolver",
    "PackageEmptyError",
    "PackageStore",
    "PersistenceFailedError",
    "ReceivedPackage",
    "RemoteMalformedResponseError",
    "RemoteRejectedError",
    "RemoteTransportError",
    "SnapshotFailedError",
    "SnapshotService",
    "UploadFailedError",
]
