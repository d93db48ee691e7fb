"""Fixtures for API unit tests: in-memory audit store, mock remote, AsyncClient."""

from datetime import datetime
from typing import List
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from deploy_console.api import dependencies
from deploy_console.application.action_orchestrator import ActionOrchestrator
from deploy_console.application.endpoint_resolver import EndpointResolver
from deploy_console.application.package_store import PackageStore
from deploy_console.config.settings import ClusterSettings
from deploy_console.domain.models.remote import RemoteSuccess
from deploy_console.governance.audit_logger import AuditRecorder
from deploy_console.governance.audit_models import AuditRecord
from deploy_console.main import app
from deploy_console.observability.metrics import MetricsCollector


class FakeAuditRepository:
    """In-memory oplog for unit tests."""

    def __init__(self):
        self.records: List[AuditRecord] = []

    async def save(self, record: AuditRecord) -> None:
        self.records.append(record)

    async def list_between(self, cluster_code: str, start: datetime, end: datetime) -> List[AuditRecord]:
        matching = [
            r for r in self.records
            if r.cluster_code == cluster_code and start <= r.timestamp_created <= end
        ]
        return sorted(matching, key=lambda r: r.timestamp_created, reverse=True)


@pytest.fixture
def audit_repository():
    return FakeAuditRepository()


@pytest.fixture
async def audit_recorder(audit_repository):
    recorder = AuditRecorder(repository=audit_repository)
    yield recorder
    await recorder.drain()


@pytest.fixture
def resolver():
    return EndpointResolver({"c1": ClusterSettings(endpoint="http://c1.example:8080", token="t1")})


@pytest.fixture
def remote():
    """Mock cluster management API so tests do not leave the process."""
    r = AsyncMock()
    r.invoke = AsyncMock(return_value=RemoteSuccess(data={"ok": True}))
    return r


@pytest.fixture
def package_repository():
    r = AsyncMock()
    r.save = AsyncMock(return_value=None)
    r.delete = AsyncMock(return_value=None)
    r.get = AsyncMock(return_value=None)
    return r


@pytest.fixture
def snapshots():
    s = AsyncMock()
    s.capture_and_persist = AsyncMock(return_value=None)
    s.latest = AsyncMock(return_value=None)
    return s


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def orchestrator(resolver, remote, audit_recorder, package_repository, snapshots, metrics, tmp_path):
    return ActionOrchestrator(
        resolver=resolver,
        remote=remote,
        audit=audit_recorder,
        packages=PackageStore(
            repository=package_repository,
            package_dir=str(tmp_path / "packages"),
            max_package_bytes=1024 * 1024,
        ),
        snapshots=snapshots,
        metrics=metrics,
    )


@pytest.fixture
def app_with_overrides(orchestrator, audit_recorder, resolver, snapshots, metrics):
    """App with orchestrator, audit, resolver and snapshots overridden for testing."""
    app.dependency_overrides[dependencies.get_action_orchestrator] = lambda: orchestrator
    app.dependency_overrides[dependencies.get_audit_recorder] = lambda: audit_recorder
    app.dependency_overrides[dependencies.get_endpoint_resolver] = lambda: resolver
    app.dependency_overrides[dependencies.get_snapshot_service] = lambda: snapshots
    app.dependency_overrides[dependencies.get_metrics] = lambda: metrics
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    """Async HTTP client for testing; uses overridden app."""
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def operator_headers():
    return {"X-Operator": "alice"}
