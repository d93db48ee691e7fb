"""DB repositories against in-memory SQLite (aiosqlite)."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from deploy_console.domain.models.action import RiskLevel
from deploy_console.domain.models.cluster import AppPackageRecord, ClusterSnapshot
from deploy_console.governance.audit_logger import AuditRecorder
from deploy_console.governance.audit_models import AuditRecord
from deploy_console.infrastructure.database.audit_repository_db import DbAuditRepository
from deploy_console.infrastructure.database.package_repository_db import DbPackageRepository
from deploy_console.infrastructure.database.session import create_schema, create_session_factory
from deploy_console.infrastructure.database.snapshot_repository_db import DbSnapshotRepository


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield create_session_factory(engine)
    await engine.dispose()


def _oplog(cluster_code: str, created: datetime, op_name: str = "STOP_APP", **overrides) -> AuditRecord:
    fields = dict(
        client_id="10.0.0.1",
        op_name=op_name,
        op_type="PAGE_MODEL",
        risk_level=RiskLevel.RISKY,
        op_item="APP",
        op_item_id="myapp_1.0.0_0",
        cluster_code=cluster_code,
        username="alice",
        timestamp_created=created,
        detail={"action": "stop", "timeout_ms": 30000},
        socket={"remote_address": "10.0.0.1", "remote_port": 52100},
    )
    fields.update(overrides)
    return AuditRecord(**fields)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ---------- Oplog ----------


async def test_oplog_query_by_day_newest_first(session_factory):
    repo = DbAuditRepository(session_factory)
    await repo.save(_oplog("c1", _utc(2023, 12, 31, 23, 59, 59), op_name="BEFORE"))
    await repo.save(_oplog("c1", _utc(2024, 1, 1, 0, 0, 0), op_name="FIRST"))
    await repo.save(_oplog("c1", _utc(2024, 1, 2, 23, 59, 59), op_name="LAST"))
    await repo.save(_oplog("c1", _utc(2024, 1, 3, 0, 0, 1), op_name="AFTER"))
    await repo.save(_oplog("c2", _utc(2024, 1, 1, 12, 0, 0), op_name="OTHER_CLUSTER"))

    recorder = AuditRecorder(repository=repo)
    records = await recorder.query("c1", date(2024, 1, 1), date(2024, 1, 2))

    assert [r.op_name for r in records] == ["LAST", "FIRST"]
    newest = records[0]
    assert newest.id is not None
    assert newest.risk_level == RiskLevel.RISKY
    assert newest.detail == {"action": "stop", "timeout_ms": 30000}
    assert newest.socket == {"remote_address": "10.0.0.1", "remote_port": 52100}
    assert newest.extends is None
    assert newest.timestamp_created == _utc(2024, 1, 2, 23, 59, 59)


async def test_oplog_same_timestamp_ordered_by_insertion(session_factory):
    repo = DbAuditRepository(session_factory)
    moment = _utc(2024, 1, 1, 8, 0, 0)
    await repo.save(_oplog("c1", moment, op_name="A"))
    await repo.save(_oplog("c1", moment, op_name="B"))

    records = await repo.list_between("c1", _utc(2024, 1, 1), _utc(2024, 1, 1, 23, 59, 59))

    assert [r.op_name for r in records] == ["B", "A"]


async def test_oplog_empty_range(session_factory):
    repo = DbAuditRepository(session_factory)
    assert await repo.list_between("c1", _utc(2024, 1, 1), _utc(2024, 1, 2)) == []


# ---------- Packages ----------


def _package(path: str = "/p/c1/web_1.0.0_0.tgz", user: str = "alice") -> AppPackageRecord:
    return AppPackageRecord(
        cluster_code="c1",
        app_id="web_1.0.0_0",
        app_name="web",
        weight=1_0000_0000_0000,
        package_path=path,
        uploaded_by=user,
    )


async def test_package_save_and_get(session_factory):
    repo = DbPackageRepository(session_factory)
    await repo.save(_package())

    stored = await repo.get("c1", "web_1.0.0_0")

    assert stored.app_name == "web"
    assert stored.package_path == "/p/c1/web_1.0.0_0.tgz"
    assert stored.uploaded_by == "alice"
    assert stored.weight == 1_0000_0000_0000
    assert stored.created_at is not None


async def test_package_save_replaces_existing_row(session_factory):
    repo = DbPackageRepository(session_factory)
    await repo.save(_package())
    await repo.save(_package(path="/p/c1/again.tgz", user="bob"))

    stored = await repo.get("c1", "web_1.0.0_0")

    assert stored.package_path == "/p/c1/again.tgz"
    assert stored.uploaded_by == "bob"


async def test_package_delete(session_factory):
    repo = DbPackageRepository(session_factory)
    await repo.save(_package())

    await repo.delete("c1", "web_1.0.0_0")

    assert await repo.get("c1", "web_1.0.0_0") is None


async def test_package_delete_missing_is_noop(session_factory):
    repo = DbPackageRepository(session_factory)
    await repo.delete("c1", "never_1.0.0_0")
    assert await repo.get("c1", "never_1.0.0_0") is None


# ---------- Snapshots ----------


async def test_snapshot_latest_is_newest(session_factory):
    repo = DbSnapshotRepository(session_factory)
    await repo.save(ClusterSnapshot(cluster_code="c1", apps=[{"appId": "web_1.0.0_0"}], ips=["10.0.0.1"]))
    saved = await repo.save(
        ClusterSnapshot(cluster_code="c1", apps=[{"appId": "web_1.1.0_0"}], ips=["10.0.0.1", "10.0.0.2"])
    )
    await repo.save(ClusterSnapshot(cluster_code="c2", apps=[], ips=[]))

    latest = await repo.latest("c1")

    assert saved.created_at is not None
    assert latest.apps == [{"appId": "web_1.1.0_0"}]
    assert latest.ips == ["10.0.0.1", "10.0.0.2"]


async def test_snapshot_latest_none_for_unknown_cluster(session_factory):
    repo = DbSnapshotRepository(session_factory)
    assert await repo.latest("c9") is None
