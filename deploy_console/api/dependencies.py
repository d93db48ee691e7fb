"""FastAPI dependency injection: settings-built singletons, orchestrator, operator, client address."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from deploy_console.api.middleware import FORWARDED_FOR_HEADER
from deploy_console.application.action_orchestrator import ActionOrchestrator
from deploy_console.application.endpoint_resolver import EndpointResolver
from deploy_console.application.package_store import PackageStore
from deploy_console.application.snapshot_service import SnapshotService
from deploy_console.config.settings import get_settings
from deploy_console.governance.audit_logger import AuditRecorder
from deploy_console.infrastructure.database.audit_repository_db import DbAuditRepository
from deploy_console.infrastructure.database.package_repository_db import DbPackageRepository
from deploy_console.infrastructure.database.session import create_engine_for, create_session_factory
from deploy_console.infrastructure.database.snapshot_repository_db import DbSnapshotRepository
from deploy_console.infrastructure.remote.cluster_client import ClusterClient
from deploy_console.observability.metrics import MetricsCollector

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None
_resolver: Optional[EndpointResolver] = None
_cluster_client: Optional[ClusterClient] = None
_audit_recorder: Optional[AuditRecorder] = None
_metrics: Optional[MetricsCollector] = None


def get_engine() -> AsyncEngine:
    """Return singleton database engine."""
    global _engine
    if _engine is None:
        _engine = create_engine_for(get_settings().database_url)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return singleton session factory bound to the engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


def get_endpoint_resolver() -> EndpointResolver:
    """Return singleton resolver; cluster configuration is read once."""
    global _resolver
    if _resolver is None:
        _resolver = EndpointResolver.from_settings(get_settings())
    return _resolver


def get_metrics() -> MetricsCollector:
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_cluster_client() -> ClusterClient:
    """Return singleton remote adapter."""
    global _cluster_client
    if _cluster_client is None:
        settings = get_settings()
        _cluster_client = ClusterClient(
            default_timeout_ms=settings.remote_default_timeout_ms,
            metrics=get_metrics() if settings.enable_metrics else None,
        )
    return _cluster_client


def get_audit_recorder() -> AuditRecorder:
    """Return singleton audit recorder (tracks in-flight background writes)."""
    global _audit_recorder
    if _audit_recorder is None:
        _audit_recorder = AuditRecorder(
            repository=DbAuditRepository(get_session_factory()),
            timezone_name=get_settings().audit_timezone,
        )
    return _audit_recorder


def get_package_store(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> PackageStore:
    settings = get_settings()
    return PackageStore(
        repository=DbPackageRepository(session_factory),
        package_dir=settings.package_dir,
        max_package_bytes=settings.max_package_bytes,
    )


def get_snapshot_service(
    resolver: Annotated[EndpointResolver, Depends(get_endpoint_resolver)],
    client: Annotated[ClusterClient, Depends(get_cluster_client)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> SnapshotService:
    return SnapshotService(
        resolver=resolver,
        remote=client,
        repository=DbSnapshotRepository(session_factory),
        timeout_ms=get_settings().snapshot_timeout_ms,
    )


def get_action_orchestrator(
    resolver: Annotated[EndpointResolver, Depends(get_endpoint_resolver)],
    client: Annotated[ClusterClient, Depends(get_cluster_client)],
    audit: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    packages: Annotated[PackageStore, Depends(get_package_store)],
    snapshots: Annotated[SnapshotService, Depends(get_snapshot_service)],
    metrics: Annotated[MetricsCollector, Depends(get_metrics)],
) -> ActionOrchestrator:
    """Build ActionOrchestrator with injected resolver, remote adapter, audit, packages, snapshots."""
    return ActionOrchestrator(
        resolver=resolver,
        remote=client,
        audit=audit,
        packages=packages,
        snapshots=snapshots,
        logger=logging.getLogger("deploy_console.application.action_orchestrator"),
        metrics=metrics if get_settings().enable_metrics else None,
    )


def get_operator(request: Request) -> str:
    """Extract operator identity from request.state (set by middleware)."""
    return request.state.operator


def get_client_address(request: Request) -> str:
    """Forwarded address chain if present, else the peer address, else '-'."""
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        ips = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        if ips:
            return ",".join(ips)
    if request.client and request.client.host:
        return request.client.host
    return "-"


def get_socket_info(request: Request) -> dict:
    """Peer details stored with each audit record."""
    return {
        "remote_address": request.client.host if request.client else None,
        "remote_port": request.client.port if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


async def shutdown_dependencies() -> None:
    """Drain audit writes, close the HTTP client and dispose of the engine."""
    global _engine, _session_factory, _cluster_client
    if _audit_recorder is not None:
        await _audit_recorder.drain()
    if _cluster_client is not None:
        await _cluster_client.close()
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
