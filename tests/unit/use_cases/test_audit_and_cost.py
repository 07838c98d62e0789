"""Unit tests for the audit trail and cost tracker."""

from datetime import timedelta

import pytest

from call_tracker.adapters.outbound.persistence import (
    InMemoryAuditLogRepository,
    InMemoryCallRepository,
    InMemoryCostRecordRepository,
    InMemoryProspectRepository,
)
from call_tracker.application.use_cases.audit_trail import AuditTrail
from call_tracker.application.use_cases.call_transitioner import CallTransitioner
from call_tracker.application.use_cases.cost_tracker import CostTracker
from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_state_machine import Trigger
from call_tracker.domain.value_objects.attendance_state import AttendanceState
from call_tracker.domain.value_objects.call_type import CallType
from tests.unit.support import PROSPECT, TENANT, RecordingAlertSink, at


class FailingAuditLogRepository(InMemoryAuditLogRepository):
    async def append(self, entry):
        raise RuntimeError("audit storage down")


class FailingCostRecordRepository(InMemoryCostRecordRepository):
    async def append(self, record):
        raise RuntimeError("cost storage down")


@pytest.mark.asyncio
async def test_record_stringifies_values():
    """Test that enum and datetime values are stored as strings."""
    repository = InMemoryAuditLogRepository()
    trail = AuditTrail(repository)

    entry = await trail.record(
        TENANT,
        "call",
        "call-1",
        "state_change",
        "admin",
        field_changed="attendance_state",
        old_value=None,
        new_value=AttendanceState.SHOW,
        metadata={"at": at(15), "count": 2},
    )

    assert entry.new_value == "show"
    assert entry.old_value is None
    assert entry.metadata == {"at": at(15).isoformat(), "count": 2}
    assert repository.all() == [entry]


@pytest.mark.asyncio
async def test_field_changes_skip_unchanged():
    """Test that only changed fields produce entries."""
    repository = InMemoryAuditLogRepository()
    trail = AuditTrail(repository)

    written = await trail.record_field_changes(
        TENANT,
        "call",
        "call-1",
        {"scheduled_end": (at(16), at(15, 30)), "prospect_email": (PROSPECT, PROSPECT)},
        "calendar_webhook",
    )

    assert written == 1
    assert [entry.field_changed for entry in repository.all()] == ["scheduled_end"]


@pytest.mark.asyncio
async def test_audit_failure_does_not_block_transition():
    """Test that a failing audit write is alerted while the transition still lands."""
    alerts = RecordingAlertSink()
    calls = InMemoryCallRepository()
    transitioner = CallTransitioner(
        calls, InMemoryProspectRepository(), AuditTrail(FailingAuditLogRepository(), alerts)
    )
    call = Call(
        call_id="call-1",
        tenant_id=TENANT,
        prospect_email=PROSPECT,
        scheduled_start=at(15),
        scheduled_end=at(15) + timedelta(hours=1),
        call_type=CallType.FIRST_CALL,
    )
    await calls.add(call)

    updated = await transitioner.transition(call, Trigger.CALENDAR_CANCELED, "calendar_webhook")

    assert updated.attendance_state == AttendanceState.CANCELED
    assert (await calls.get(TENANT, "call-1")).attendance_state == AttendanceState.CANCELED
    assert alerts.alerts[0].severity == "high"
    assert alerts.alerts[0].title == "Audit log write failed"


def test_cost_calculation():
    """Test token pricing per million tokens."""
    tracker = CostTracker(InMemoryCostRecordRepository())

    assert tracker.calculate(1000, 500) == (0.003, 0.0075, 0.0105)
    assert tracker.calculate(0, 0) == (0.0, 0.0, 0.0)


@pytest.mark.asyncio
async def test_cost_record_and_total():
    """Test that recorded costs add up per tenant."""
    tracker = CostTracker(InMemoryCostRecordRepository(), input_cost_per_million=1.0, output_cost_per_million=2.0)

    record = await tracker.record(TENANT, "call-1", "claude-sonnet", 2_000_000, 1_000_000, processing_ms=800)
    await tracker.record(TENANT, "call-2", "claude-sonnet", 1_000_000, 0)

    assert record.total_cost_usd == 4.0
    assert record.processing_time_ms == 800
    assert await tracker.total_for_tenant(TENANT) == 5.0


@pytest.mark.asyncio
async def test_cost_write_failure_returns_none():
    """Test that a failing cost write is logged and swallowed."""
    logged = []
    tracker = CostTracker(FailingCostRecordRepository(), logger=lambda *a, **kw: logged.append(kw))

    assert await tracker.record(TENANT, "call-1", "claude-sonnet", 10, 10) is None
    assert logged[0]["action"] == "cost_write_failed"
