"""Tests for /api/app: lifecycle actions, publish upload, list and snapshot views."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from deploy_console.domain.models.cluster import ClusterSnapshot
from deploy_console.domain.models.remote import RemoteRejected, RemoteSuccess


@pytest.mark.asyncio
async def test_restart_success(async_client: AsyncClient, operator_headers, remote, snapshots):
    r = await async_client.post(
        "/api/app/myapp_1.0.0_0/restart",
        json={"clusterCode": "c1"},
        headers=operator_headers,
    )
    assert r.status_code == 200
    assert r.json() == {"code": "SUCCESS", "data": {"ok": True}}
    _, path = remote.invoke.call_args[0]
    assert path == "/api/restart/myapp_1.0.0_0"
    snapshots.capture_and_persist.assert_not_awaited()


@pytest.mark.asyncio
async def test_stop_remote_error_is_200_with_code(async_client: AsyncClient, operator_headers, remote, snapshots):
    remote.invoke.return_value = RemoteRejected(code="ERROR", message="node unreachable")

    r = await async_client.post(
        "/api/app/myapp_1.0.0_0/stop",
        json={"clusterCode": "c1"},
        headers=operator_headers,
    )

    assert r.status_code == 200
    assert r.json() == {"code": "ERROR", "message": "node unreachable"}
    snapshots.capture_and_persist.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_cluster(async_client: AsyncClient, operator_headers, remote):
    r = await async_client.post(
        "/api/app/myapp_1.0.0_0/start",
        json={"clusterCode": "nope"},
        headers=operator_headers,
    )
    assert r.status_code == 200
    assert r.json() == {"code": "ERROR", "message": "cluster not found: nope"}
    remote.invoke.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_snapshots_and_honours_timeout(async_client: AsyncClient, operator_headers, remote, snapshots):
    r = await async_client.post(
        "/api/app/myapp_1.0.0_0/start",
        params={"timeout": 5000},
        json={"clusterCode": "c1"},
        headers=operator_headers,
    )
    assert r.json()["code"] == "SUCCESS"
    assert remote.invoke.call_args[1]["timeout_ms"] == 5000
    snapshots.capture_and_persist.assert_awaited_once_with("c1")


@pytest.mark.asyncio
async def test_clean_exit_record_reserved_id(async_client: AsyncClient, operator_headers, remote):
    r = await async_client.post(
        "/api/app/__PROXY___0.0.0_0/clean_exit_record",
        json={"clusterCode": "c1"},
        headers=operator_headers,
    )
    assert r.json()["code"] == "SUCCESS"
    _, path = remote.invoke.call_args[0]
    assert path == "/api/clean_exit_record/__PROXY__"
    assert remote.invoke.call_args[1]["method"] == "DELETE"


@pytest.mark.asyncio
async def test_delete_drops_package_record(async_client: AsyncClient, operator_headers, package_repository):
    r = await async_client.post(
        "/api/app/myapp_1.0.0_0/delete",
        json={"clusterCode": "c1"},
        headers=operator_headers,
    )
    assert r.json()["code"] == "SUCCESS"
    package_repository.delete.assert_awaited_once_with("c1", "myapp_1.0.0_0")


@pytest.mark.asyncio
async def test_action_is_audited(
    async_client: AsyncClient, operator_headers, audit_recorder, audit_repository
):
    headers = {**operator_headers, "X-Forwarded-For": "1.2.3.4, 5.6.7.8"}
    await async_client.post("/api/app/myapp_1.0.0_0/reload", json={"clusterCode": "c1"}, headers=headers)
    await audit_recorder.drain()

    assert len(audit_repository.records) == 1
    record = audit_repository.records[0]
    assert record.op_name == "RELOAD_APP"
    assert record.username == "alice"
    assert record.client_id == "1.2.3.4,5.6.7.8"
    assert record.op_item_id == "myapp_1.0.0_0"
    assert record.cluster_code == "c1"
    assert "user_agent" in record.socket


@pytest.mark.asyncio
async def test_missing_cluster_code_is_422(async_client: AsyncClient, operator_headers, remote):
    r = await async_client.post("/api/app/myapp_1.0.0_0/stop", json={}, headers=operator_headers)
    assert r.status_code == 422
    remote.invoke.assert_not_awaited()


@pytest.mark.asyncio
async def test_unsafe_app_id_is_422_and_audited(
    async_client: AsyncClient, operator_headers, remote, audit_recorder, audit_repository
):
    r = await async_client.post("/api/app/a%25b/stop", json={"clusterCode": "c1"}, headers=operator_headers)
    assert r.status_code == 422
    assert "detail" in r.json()
    remote.invoke.assert_not_awaited()

    await audit_recorder.drain()
    assert len(audit_repository.records) == 1
    assert audit_repository.records[0].op_name == "STOP_APP"
    assert audit_repository.records[0].op_item_id == "a%b"


@pytest.mark.asyncio
async def test_blank_cluster_code_is_422_and_audited(
    async_client: AsyncClient, operator_headers, remote, audit_recorder, audit_repository
):
    r = await async_client.post(
        "/api/app/myapp_1.0.0_0/restart",
        json={"clusterCode": "   "},
        headers=operator_headers,
    )
    assert r.status_code == 422
    remote.invoke.assert_not_awaited()

    await audit_recorder.drain()
    assert len(audit_repository.records) == 1


@pytest.mark.asyncio
async def test_operator_required(async_client: AsyncClient, remote):
    r = await async_client.post("/api/app/myapp_1.0.0_0/stop", json={"clusterCode": "c1"})
    assert r.status_code == 400
    remote.invoke.assert_not_awaited()


# ---------- Publish ----------


@pytest.mark.asyncio
async def test_publish_upload(
    async_client: AsyncClient,
    operator_headers,
    remote,
    package_repository,
    snapshots,
    audit_recorder,
    audit_repository,
):
    r = await async_client.post(
        "/api/app/publish",
        params={"clusterCode": "c1"},
        files={"pkg": ("simple-app_1.0.0_0.tgz", b"gzip-bytes", "application/gzip")},
        headers=operator_headers,
    )

    assert r.status_code == 200
    assert r.json()["code"] == "SUCCESS"
    record = package_repository.save.call_args[0][0]
    assert record.app_id == "simple-app_1.0.0_0"
    assert record.app_name == "simple-app"
    assert record.uploaded_by == "alice"
    _, path = remote.invoke.call_args[0]
    assert path == "/api/publish"
    assert remote.invoke.call_args[1]["upload"].filename == "simple-app_1.0.0_0.tgz"
    snapshots.capture_and_persist.assert_awaited_once_with("c1")

    await audit_recorder.drain()
    assert audit_repository.records[0].op_name == "PUBLISH_APP"
    assert audit_repository.records[0].op_item_id == "simple-app_1.0.0_0.tgz"


@pytest.mark.asyncio
async def test_publish_recover_skips_record(async_client: AsyncClient, operator_headers, package_repository, snapshots):
    r = await async_client.post(
        "/api/app/publish",
        params={"clusterCode": "c1", "recover": "true"},
        files={"pkg": ("simple-app_1.0.0_0.tgz", b"gzip-bytes", "application/gzip")},
        headers=operator_headers,
    )

    assert r.json()["code"] == "SUCCESS"
    package_repository.save.assert_not_awaited()
    snapshots.capture_and_persist.assert_not_awaited()


@pytest.mark.asyncio
async def test_publish_without_package(async_client: AsyncClient, operator_headers, remote, audit_recorder, audit_repository):
    r = await async_client.post("/api/app/publish", params={"clusterCode": "c1"}, headers=operator_headers)

    assert r.status_code == 200
    assert r.json()["code"] == "ERROR_APP_PACKAGE_EMPTY"
    remote.invoke.assert_not_awaited()
    await audit_recorder.drain()
    assert audit_repository.records[0].op_item_id == "UNKNOW_FILE_NAME"


@pytest.mark.asyncio
async def test_publish_remote_failure(async_client: AsyncClient, operator_headers, remote, snapshots):
    remote.invoke.return_value = RemoteRejected(code="ERROR", message="disk full on node")

    r = await async_client.post(
        "/api/app/publish",
        params={"clusterCode": "c1"},
        files={"pkg": ("simple-app_1.0.0_0.tgz", b"gzip-bytes", "application/gzip")},
        headers=operator_headers,
    )

    assert r.json() == {"code": "ERROR", "message": "disk full on node"}
    snapshots.capture_and_persist.assert_not_awaited()


# ---------- Read views ----------


@pytest.mark.asyncio
async def test_list_apps(async_client: AsyncClient, operator_headers, remote):
    remote.invoke.return_value = RemoteSuccess(
        data={
            "success": [{"ip": "10.0.0.1", "apps": [{"appId": "web_1.0.0_0", "name": "web"}]}],
            "error": [],
        }
    )

    r = await async_client.get("/api/app/list", params={"clusterCode": "c1"}, headers=operator_headers)

    assert r.status_code == 200
    body = r.json()
    assert body["code"] == "SUCCESS"
    assert body["data"]["success"][0]["appId"] == "web_1.0.0_0"
    assert body["data"]["success"][0]["cluster"][0]["ip"] == "10.0.0.1"
    assert body["data"]["error"] == []


@pytest.mark.asyncio
async def test_latest_snapshot(async_client: AsyncClient, operator_headers, snapshots):
    snapshots.latest.return_value = ClusterSnapshot(
        cluster_code="c1",
        apps=[{"appId": "web_1.0.0_0"}],
        ips=["10.0.0.1"],
        created_at=datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc),
    )

    r = await async_client.get("/api/app/snapshot", params={"clusterCode": "c1"}, headers=operator_headers)

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["clusterCode"] == "c1"
    assert data["apps"] == [{"appId": "web_1.0.0_0"}]
    assert data["ips"] == ["10.0.0.1"]
    assert data["gmtCreate"].startswith("2024-01-01T08:00:00")


@pytest.mark.asyncio
async def test_latest_snapshot_none(async_client: AsyncClient, operator_headers):
    r = await async_client.get("/api/app/snapshot", params={"clusterCode": "c1"}, headers=operator_headers)
    assert r.json() == {"code": "SUCCESS"}
