"""App lifecycle router: publish, start, stop, restart, reload, delete, clean exit record, list."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse

from deploy_console.api.dependencies import (
    get_action_orchestrator,
    get_client_address,
    get_operator,
    get_snapshot_service,
    get_socket_info,
)
from deploy_console.application.action_orchestrator import ActionOrchestrator
from deploy_console.application.snapshot_service import SnapshotService
from deploy_console.domain.models.action import ActionRequest, ActionResult, ActionType, PackageUpload
from deploy_console.domain.models.remote import SUCCESS
from deploy_console.domain.schemas.action import ActionResponse, ClusterActionBody
from deploy_console.domain.validators.action_validator import validate_cluster_code

router = APIRouter()

Operator = Annotated[str, Depends(get_operator)]
ClientAddress = Annotated[str, Depends(get_client_address)]
SocketInfo = Annotated[dict, Depends(get_socket_info)]
Orchestrator = Annotated[ActionOrchestrator, Depends(get_action_orchestrator)]
TimeoutOverride = Annotated[Optional[int], Query(alias="timeout", gt=0, description="Remote timeout in ms")]


def _respond(result: ActionResult) -> JSONResponse:
    return JSONResponse(content=result.to_payload())


async def _run(orchestrator: ActionOrchestrator, request: ActionRequest) -> JSONResponse:
    """The orchestrator audits every request before validating it."""
    return _respond(await orchestrator.execute(request))


async def _app_action(
    action: ActionType,
    app_id: str,
    body: ClusterActionBody,
    operator: str,
    client_address: str,
    socket: dict,
    orchestrator: ActionOrchestrator,
    timeout_ms: Optional[int] = None,
) -> JSONResponse:
    request = ActionRequest(
        action=action,
        cluster_code=body.cluster_code,
        app_id=app_id,
        actor=operator,
        client_address=client_address,
        timeout_ms=timeout_ms,
        socket=socket,
    )
    return await _run(orchestrator, request)


@router.get("/list", response_model=ActionResponse)
async def list_apps(
    orchestrator: Orchestrator,
    cluster_code: Annotated[str, Query(alias="clusterCode", min_length=1)],
):
    """Cluster-wide app view merged from every node's report."""
    validate_cluster_code(cluster_code)
    return _respond(await orchestrator.list_apps(cluster_code))


@router.get("/snapshot", response_model=ActionResponse)
async def latest_snapshot(
    snapshots: Annotated[SnapshotService, Depends(get_snapshot_service)],
    cluster_code: Annotated[str, Query(alias="clusterCode", min_length=1)],
):
    """Newest persisted composition snapshot of a cluster."""
    snapshot = await snapshots.latest(cluster_code)
    data = None
    if snapshot is not None:
        data = {
            "clusterCode": snapshot.cluster_code,
            "apps": snapshot.apps,
            "ips": snapshot.ips,
            "gmtCreate": snapshot.created_at.isoformat() if snapshot.created_at else None,
        }
    return JSONResponse(content=ActionResponse(code=SUCCESS, data=data).model_dump(exclude_none=True))


@router.post("/publish", response_model=ActionResponse)
async def publish_app(
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
    cluster_code: Annotated[str, Query(alias="clusterCode", min_length=1)],
    recover: bool = False,
    app_id: Annotated[Optional[str], Query(alias="appId")] = None,
    timeout_ms: TimeoutOverride = None,
    pkg: Annotated[Optional[UploadFile], File()] = None,
):
    """Publish a package (multipart field `pkg`). recover=true replays without tracking a new package."""
    package = PackageUpload(filename=pkg.filename, file=pkg.file) if pkg is not None else None
    request = ActionRequest(
        action=ActionType.PUBLISH,
        cluster_code=cluster_code,
        app_id=app_id,
        actor=operator,
        client_address=client_address,
        timeout_ms=timeout_ms,
        recover=recover,
        package=package,
        socket=socket,
    )
    return await _run(orchestrator, request)


@router.post("/{app_id}/delete", response_model=ActionResponse)
async def delete_app(
    app_id: str,
    body: ClusterActionBody,
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
    timeout_ms: TimeoutOverride = None,
):
    return await _app_action(
        ActionType.DELETE, app_id, body, operator, client_address, socket, orchestrator, timeout_ms
    )


@router.post("/{app_id}/start", response_model=ActionResponse)
async def start_app(
    app_id: str,
    body: ClusterActionBody,
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
    timeout_ms: TimeoutOverride = None,
):
    return await _app_action(
        ActionType.START, app_id, body, operator, client_address, socket, orchestrator, timeout_ms
    )


@router.post("/{app_id}/stop", response_model=ActionResponse)
async def stop_app(
    app_id: str,
    body: ClusterActionBody,
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
):
    return await _app_action(ActionType.STOP, app_id, body, operator, client_address, socket, orchestrator)


@router.post("/{app_id}/restart", response_model=ActionResponse)
async def restart_app(
    app_id: str,
    body: ClusterActionBody,
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
):
    return await _app_action(ActionType.RESTART, app_id, body, operator, client_address, socket, orchestrator)


@router.post("/{app_id}/reload", response_model=ActionResponse)
async def reload_app(
    app_id: str,
    body: ClusterActionBody,
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
):
    return await _app_action(ActionType.RELOAD, app_id, body, operator, client_address, socket, orchestrator)


@router.post("/{app_id}/clean_exit_record", response_model=ActionResponse)
async def clean_app_exit_record(
    app_id: str,
    body: ClusterActionBody,
    operator: Operator,
    client_address: ClientAddress,
    socket: SocketInfo,
    orchestrator: Orchestrator,
):
    return await _app_action(
        ActionType.CLEAN_EXIT_RECORD, app_id, body, operator, client_address, socket, orchestrator
    )
