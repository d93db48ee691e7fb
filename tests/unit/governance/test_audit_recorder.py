"""Governance tests: oplog record fields, fire-and-forget writes, immutability, day-bounded queries."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from deploy_console.domain.models.action import RiskLevel
from deploy_console.governance.audit_logger import AuditRecorder
from deploy_console.governance.audit_models import AuditRecord
from deploy_console.governance.exceptions import InvalidTimeRangeError, UnknownTimezoneError


@pytest.fixture
def audit_repository():
    repo = AsyncMock()
    repo.save = AsyncMock(return_value=None)
    repo.list_between = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def recorder(audit_repository, logger):
    return AuditRecorder(repository=audit_repository, logger=logger)


def _record(recorder: AuditRecorder, **overrides) -> AuditRecord:
    kwargs = dict(
        client_id="10.0.0.1",
        op_name="STOP_APP",
        risk_level=RiskLevel.RISKY,
        op_item_id="myapp_1.0.0_0",
        cluster_code="c1",
        username="alice",
        detail={"action": "stop"},
        socket={"remote_address": "10.0.0.1"},
    )
    kwargs.update(overrides)
    return recorder.record(**kwargs)


async def test_record_fields_and_write(recorder, audit_repository):
    """who, what, where, when (UTC) are all captured and the write reaches the repository."""
    before = datetime.now(timezone.utc)
    returned = _record(recorder)
    await recorder.drain()

    assert audit_repository.save.await_count == 1
    record = audit_repository.save.call_args[0][0]
    assert record is returned
    assert record.client_id == "10.0.0.1"
    assert record.op_name == "STOP_APP"
    assert record.op_type == "PAGE_MODEL"
    assert record.op_item == "APP"
    assert record.risk_level == RiskLevel.RISKY
    assert record.op_item_id == "myapp_1.0.0_0"
    assert record.cluster_code == "c1"
    assert record.username == "alice"
    assert record.detail == {"action": "stop"}
    assert record.timestamp_created.tzinfo is not None
    assert record.timestamp_created >= before
    with pytest.raises(AttributeError):
        record.username = "mallory"  # type: ignore[misc]


async def test_missing_client_id_becomes_dash(recorder, audit_repository):
    _record(recorder, client_id="")
    await recorder.drain()
    assert audit_repository.save.call_args[0][0].client_id == "-"


async def test_record_does_not_wait_for_write(recorder, audit_repository):
    gate = asyncio.Event()

    async def slow_save(record):
        await gate.wait()

    audit_repository.save.side_effect = slow_save
    _record(recorder)

    assert recorder.pending == 1
    gate.set()
    await recorder.drain()
    assert recorder.pending == 0


async def test_write_failure_is_logged_not_raised(recorder, audit_repository, logger):
    audit_repository.save.side_effect = RuntimeError("db down")

    _record(recorder)
    await recorder.drain()

    logger.error.assert_called_once()
    assert logger.error.call_args[0][0] == "audit_write_failed"
    assert logger.error.call_args[1]["extra"]["error_kind"] == "AUDIT_WRITE_FAILED"


async def test_query_uses_whole_days(recorder, audit_repository):
    await recorder.query("c1", date(2024, 1, 1), date(2024, 1, 2))

    cluster_code, lower, upper = audit_repository.list_between.call_args[0]
    assert cluster_code == "c1"
    assert lower == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert upper == datetime(2024, 1, 2, 23, 59, 59, 999999, tzinfo=timezone.utc)


async def test_query_same_day(recorder, audit_repository):
    await recorder.query("c1", date(2024, 1, 1), date(2024, 1, 1))

    _, lower, upper = audit_repository.list_between.call_args[0]
    assert upper - lower == timedelta(days=1) - timedelta(microseconds=1)


async def test_query_accepts_datetimes(recorder, audit_repository):
    await recorder.query(
        "c1",
        datetime(2024, 1, 1, 15, 30, tzinfo=timezone.utc),
        datetime(2024, 1, 2, 8, 0, tzinfo=timezone.utc),
    )

    _, lower, _ = audit_repository.list_between.call_args[0]
    assert lower == datetime(2024, 1, 1, tzinfo=timezone.utc)


async def test_query_in_configured_time_zone(audit_repository):
    recorder = AuditRecorder(repository=audit_repository, timezone_name="Asia/Shanghai")

    await recorder.query("c1", date(2024, 1, 1), date(2024, 1, 1))

    _, lower, _ = audit_repository.list_between.call_args[0]
    assert lower == datetime(2023, 12, 31, 16, 0, tzinfo=timezone.utc)


async def test_query_rejects_inverted_range(recorder, audit_repository):
    with pytest.raises(InvalidTimeRangeError):
        await recorder.query("c1", date(2024, 1, 3), date(2024, 1, 1))
    audit_repository.list_between.assert_not_awaited()


def test_unknown_time_zone(audit_repository):
    with pytest.raises(UnknownTimezoneError):
        AuditRecorder(repository=audit_repository, timezone_name="Mars/Olympus")
