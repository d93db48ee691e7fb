"""Action orchestrator: one short-circuiting pipeline per operator action.

Audit intent is submitted first, then the endpoint is resolved, the remote call
dispatched and, only on SUCCESS, local bookkeeping (package record cleanup,
snapshot) runs. Steps raise ActionError; execute() converts the first one into
the normalized ActionResult.
"""

import logging
import time
from pathlib import Path
from typing import Optional

from deploy_console.application.cluster_state import fetch_cluster_apps
from deploy_console.application.endpoint_resolver import EndpointResolver
from deploy_console.application.exceptions import ActionError, PackageEmptyError
from deploy_console.application.package_store import PACKAGE_SUFFIX, PackageStore
from deploy_console.application.remote_caller import RemoteCaller, UploadPart, raise_for_outcome
from deploy_console.application.snapshot_service import SnapshotService
from deploy_console.domain.exceptions import DomainValidationError
from deploy_console.domain.models.action import (
    ActionRequest,
    ActionResult,
    ActionRun,
    ActionState,
    ActionType,
    effective_timeout_ms,
    remote_path,
)
from deploy_console.domain.models.cluster import ClusterEndpoint
from deploy_console.domain.models.remote import SUCCESS, RemoteSuccess
from deploy_console.domain.validators.action_validator import validate_action_request
from deploy_console.governance.audit_logger import AuditRecorder
from deploy_console.observability.metrics import MetricsCollector

UNKNOWN_FILE_NAME = "UNKNOW_FILE_NAME"
PACKAGE_FIELD = "pkg"


def _audit_item_id(request: ActionRequest) -> Optional[str]:
    if request.action is not ActionType.PUBLISH:
        return request.app_id
    if request.package is not None and request.package.filename:
        return request.package.filename
    return request.app_id or UNKNOWN_FILE_NAME


def _audit_detail(request: ActionRequest) -> dict:
    detail = {
        "action": request.action.value,
        "app_id": request.app_id,
        "timeout_ms": effective_timeout_ms(request.action, request.timeout_ms),
    }
    if request.action is ActionType.PUBLISH:
        detail["recover"] = request.recover
    return detail


class ActionOrchestrator:
    """
    Application-layer orchestration only. No HTTP, no FastAPI.
    Failure policy: endpoint, package and snapshot failures end the pipeline with
    their own code; audit and package-record deletion failures are logged only.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        remote: RemoteCaller,
        audit: AuditRecorder,
        packages: PackageStore,
        snapshots: SnapshotService,
        logger: Optional[logging.Logger] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._resolver = resolver
        self._remote = remote
        self._audit = audit
        self._packages = packages
        self._snapshots = snapshots
        self._logger = logger or logging.getLogger(__name__)
        self._metrics = metrics

    async def execute(self, request: ActionRequest) -> ActionResult:
        """
        Run the pipeline for one request. Never raises ActionError; returns the outcome.
        A request failing domain validation is audited, then the DomainValidationError propagates.
        """
        run = ActionRun(request=request)
        started = time.monotonic()

        # Step 1: Record intent; must happen before anything can fail
        self._record_intent(request)
        run.transition_to(ActionState.AUDITED)

        # Malformed requests are rejected only after their intent is on record
        try:
            validate_action_request(request)
        except DomainValidationError as e:
            self._logger.warning(
                "action_rejected",
                extra={
                    "action": request.action.value,
                    "cluster_code": request.cluster_code,
                    "app_id": request.app_id,
                    "error": e.message,
                },
            )
            raise

        success: Optional[RemoteSuccess] = None
        try:
            # Step 2: Resolve endpoint (lookup miss ends the pipeline, no remote call)
            endpoint = self._resolver.resolve(request.cluster_code)
            run.transition_to(ActionState.ENDPOINT_RESOLVED)

            # Step 3: Publish only: receive package and track it before dispatch
            upload = None
            if request.action is ActionType.PUBLISH:
                upload = await self._prepare_package(request)

            # Step 4: Dispatch
            outcome = await self._dispatch(run, endpoint, upload)
            success = raise_for_outcome(outcome)
            run.transition_to(ActionState.SUCCEEDED)

            # Step 5: Delete only: drop the package record (best effort)
            if request.action is ActionType.DELETE and request.app_id:
                await self._packages.delete(request.cluster_code, request.app_id)

            # Step 6: Snapshot; failure is reported but cannot undo the remote action
            if self._should_snapshot(request):
                await self._snapshots.capture_and_persist(request.cluster_code)
                run.transition_to(ActionState.SNAPSHOTTED)
        except ActionError as e:
            run.transition_to(ActionState.FAILED)
            self._logger.error(
                "action_failed",
                extra={
                    "action": request.action.value,
                    "cluster_code": request.cluster_code,
                    "app_id": request.app_id,
                    "code": e.code,
                    "error_kind": e.kind.value,
                    "error": e.message,
                    "remote_succeeded": success is not None,
                },
            )
            result = ActionResult(
                code=e.code,
                message=e.message,
                error_kind=e.kind,
                remote_succeeded=success is not None,
            )
        else:
            self._logger.info(
                "action_succeeded",
                extra={
                    "action": request.action.value,
                    "cluster_code": request.cluster_code,
                    "app_id": request.app_id,
                    "states": [s.value for s in run.history],
                },
            )
            result = ActionResult(code=SUCCESS, data=success.data, remote_succeeded=True)

        run.transition_to(ActionState.DONE)
        result.state = run.state
        self._observe(request, result, started)
        return result

    async def list_apps(self, cluster_code: str) -> ActionResult:
        """Read-only cluster view: merged apps per node plus nodes that failed to answer."""
        try:
            endpoint = self._resolver.resolve(cluster_code)
            view = await fetch_cluster_apps(self._remote, endpoint)
        except ActionError as e:
            self._logger.error(
                "list_apps_failed",
                extra={"cluster_code": cluster_code, "code": e.code, "error": e.message},
            )
            return ActionResult(code=e.code, message=e.message, error_kind=e.kind)
        return ActionResult(
            code=SUCCESS,
            data={"success": view["apps"], "error": view["error"]},
            remote_succeeded=True,
        )

    def _record_intent(self, request: ActionRequest) -> None:
        definition = request.definition
        try:
            self._audit.record(
                client_id=request.client_address,
                op_name=definition.op_name,
                risk_level=definition.risk_level,
                op_item_id=_audit_item_id(request),
                cluster_code=request.cluster_code,
                username=request.actor,
                detail=_audit_detail(request),
                socket=request.socket,
            )
        except Exception as e:
            # Submission itself failed (e.g. no running loop); the action still proceeds.
            self._logger.error(
                "audit_submit_failed",
                extra={"op_name": definition.op_name, "cluster_code": request.cluster_code, "error": str(e)},
            )

    async def _prepare_package(self, request: ActionRequest) -> UploadPart:
        if request.recover and request.package is None:
            # Replay of a package received earlier; its record already exists.
            record = None
            if request.app_id:
                record = await self._packages.get(request.cluster_code, request.app_id)
            if record is None:
                raise PackageEmptyError(f"no stored package to recover for {request.app_id}")
            filename = Path(record.package_path).name or f"{record.app_id}{PACKAGE_SUFFIX}"
            return UploadPart(field=PACKAGE_FIELD, filename=filename, path=record.package_path)

        received = await self._packages.receive(request.cluster_code, request.package)
        if not request.recover:
            await self._packages.save(
                PackageStore.record_for(request.cluster_code, received, request.actor)
            )
        return UploadPart(field=PACKAGE_FIELD, filename=received.filename, path=received.path)

    async def _dispatch(self, run: ActionRun, endpoint: ClusterEndpoint, upload: Optional[UploadPart]):
        request = run.request
        definition = request.definition
        path = remote_path(request.action, request.app_id)
        timeout_ms = effective_timeout_ms(request.action, request.timeout_ms)
        run.transition_to(ActionState.DISPATCHED)
        self._logger.info(
            "action_dispatched",
            extra={
                "action": request.action.value,
                "cluster_code": endpoint.cluster_code,
                "endpoint": endpoint.base_address,
                "method": definition.method,
                "path": path,
                "timeout_ms": timeout_ms,
            },
        )
        return await self._remote.invoke(
            endpoint,
            path,
            method=definition.method,
            timeout_ms=timeout_ms,
            upload=upload,
        )

    @staticmethod
    def _should_snapshot(request: ActionRequest) -> bool:
        if request.action is ActionType.PUBLISH and request.recover:
            return False
        return request.definition.snapshot_after_success

    def _observe(self, request: ActionRequest, result: ActionResult, started: float) -> None:
        if self._metrics is None:
            return
        self._metrics.increment("actions_total", action=request.action.value, code=result.code)
        self._metrics.observe_latency(
            "action_duration_ms",
            (time.monotonic() - started) * 1000,
            action=request.action.value,
        )
