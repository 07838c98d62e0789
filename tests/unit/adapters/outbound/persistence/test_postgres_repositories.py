"""Unit tests for Postgres repositories using SQLite in-memory."""

from dataclasses import replace
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.orm import sessionmaker

from call_tracker.adapters.outbound.persistence.models import Base, CallModel
from call_tracker.adapters.outbound.persistence.postgres_audit_log_repository import (
    PostgresAuditLogRepository,
)
from call_tracker.adapters.outbound.persistence.postgres_call_repository import PostgresCallRepository
from call_tracker.adapters.outbound.persistence.postgres_cost_record_repository import (
    PostgresCostRecordRepository,
)
from call_tracker.adapters.outbound.persistence.postgres_prospect_repository import (
    PostgresProspectRepository,
)
from call_tracker.domain.entities.audit_entry import AuditEntry
from call_tracker.domain.entities.call import Call
from call_tracker.domain.entities.cost_record import CostRecord
from call_tracker.domain.errors import UnknownAttendanceStateError
from call_tracker.domain.value_objects.attendance_state import AttendanceState
from call_tracker.domain.value_objects.call_type import CallType
from tests.unit.support import CLOSER, PROSPECT, TENANT, at

MODULE = "call_tracker.adapters.outbound.persistence"


@pytest.fixture
def session_factory():
    """Create SQLite in-memory engine and session factory for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def patch_sessions(session_factory, monkeypatch):
    """Point every Postgres repository at the SQLite session factory."""

    def get_test_db_session():
        return session_factory()

    for name in (
        "postgres_call_repository",
        "postgres_prospect_repository",
        "postgres_audit_log_repository",
        "postgres_cost_record_repository",
    ):
        monkeypatch.setattr(f"{MODULE}.{name}.get_db_session", get_test_db_session)


def _call(call_id="call-1", start=None, state=None, event_id="evt-1") -> Call:
    start = start or at(15)
    return Call(
        call_id=call_id,
        tenant_id=TENANT,
        prospect_email=PROSPECT,
        scheduled_start=start,
        scheduled_end=start + timedelta(hours=1),
        call_type=CallType.FIRST_CALL,
        attendance_state=state,
        calendar_event_id=event_id,
        event_revision="r1",
        closer_email=CLOSER,
    )


@pytest.mark.asyncio
async def test_call_round_trip():
    """Test that a call survives a save and load."""
    repository = PostgresCallRepository()
    await repository.add(_call())

    loaded = await repository.get(TENANT, "call-1")

    assert loaded.call_id == "call-1"
    assert loaded.attendance_state is None
    assert loaded.call_type == CallType.FIRST_CALL
    assert loaded.scheduled_start == at(15)
    assert loaded.scheduled_start.tzinfo is not None
    assert await repository.get("other-tenant", "call-1") is None


@pytest.mark.asyncio
async def test_compare_and_set_from_unset_state():
    """Test compare-and-set against a NULL state."""
    repository = PostgresCallRepository()
    await repository.add(_call())

    assert await repository.compare_and_set_state(
        TENANT, "call-1", None, AttendanceState.WAITING_FOR_OUTCOME
    )
    assert not await repository.compare_and_set_state(TENANT, "call-1", None, AttendanceState.CANCELED)
    assert await repository.compare_and_set_state(
        TENANT,
        "call-1",
        AttendanceState.WAITING_FOR_OUTCOME,
        AttendanceState.SHOW,
        {"transcript_ref": "tr-1"},
    )

    loaded = await repository.get(TENANT, "call-1")
    assert loaded.attendance_state == AttendanceState.SHOW
    assert loaded.transcript_ref == "tr-1"


@pytest.mark.asyncio
async def test_update_fields_and_latest_by_event():
    """Test field updates and successor lookup by event id."""
    repository = PostgresCallRepository()
    await repository.add(replace(_call("call-1"), created_at=at(9)))
    await repository.add(replace(_call("call-2", start=at(17)), created_at=at(10)))
    await repository.update_fields(TENANT, "call-1", {"rescheduled_to_call_id": "call-2"})

    original = await repository.get(TENANT, "call-1")
    latest = await repository.find_latest_by_event(TENANT, "evt-1")

    assert original.rescheduled_to_call_id == "call-2"
    assert latest.call_id == "call-2"


@pytest.mark.asyncio
async def test_sweeper_and_overlap_queries():
    """Test the pending, waiting and overlap queries."""
    repository = PostgresCallRepository()
    await repository.add(_call("pending", start=at(13)))
    await repository.add(_call("waiting", start=at(12), state=AttendanceState.WAITING_FOR_OUTCOME, event_id="e2"))
    await repository.add(_call("shown", start=at(15), state=AttendanceState.SHOW, event_id="e3"))
    await repository.add(_call("overlap", start=at(15, 30), event_id="e4"))

    pending = await repository.find_pending_past_end(at(15))
    waiting = await repository.find_waiting(at(15))
    overlapping = await repository.find_overlapping_pre_outcome(await repository.get(TENANT, "shown"))

    assert [c.call_id for c in pending] == ["pending"]
    assert [c.call_id for c in waiting] == ["waiting"]
    assert [c.call_id for c in overlapping] == ["overlap"]


@pytest.mark.asyncio
async def test_unknown_stored_state_raises(session_factory):
    """Test that an unknown stored state is surfaced instead of coerced."""
    repository = PostgresCallRepository()
    await repository.add(_call())
    db = session_factory()
    db.execute(update(CallModel).where(CallModel.call_id == "call-1").values(attendance_state="no_show"))
    db.commit()
    db.close()

    with pytest.raises(UnknownAttendanceStateError):
        await repository.get(TENANT, "call-1")


@pytest.mark.asyncio
async def test_prospect_counters():
    """Test atomic prospect counters."""
    repository = PostgresProspectRepository()
    prospect, created = await repository.find_or_create(TENANT, "Jane.Doe@example.com", "Jane Doe")
    again, created_again = await repository.find_or_create(TENANT, PROSPECT)

    await repository.record_call_scheduled(TENANT, PROSPECT, date(2026, 3, 5))
    await repository.record_call_scheduled(TENANT, PROSPECT, date(2026, 3, 2))
    shows = [await repository.record_show(TENANT, PROSPECT) for _ in range(3)]

    loaded = await repository.get(TENANT, PROSPECT)
    assert created is True
    assert created_again is False
    assert again.prospect_id == prospect.prospect_id
    assert loaded.total_calls == 2
    assert loaded.total_shows == 2
    assert shows == [True, True, False]
    assert loaded.first_call_date == date(2026, 3, 2)
    assert loaded.last_call_date == date(2026, 3, 5)


@pytest.mark.asyncio
async def test_prospect_payments():
    """Test payment and reversal arithmetic."""
    repository = PostgresProspectRepository()
    await repository.find_or_create(TENANT, PROSPECT)

    paid = await repository.record_payment(TENANT, PROSPECT, 1000.0, date(2026, 3, 4), "closed_won", True)
    refunded = await repository.record_payment(TENANT, PROSPECT, -1500.0, None, "lost", False)

    assert paid.total_cash_collected == 1000.0
    assert paid.payment_count == 1
    assert refunded.total_cash_collected == 0.0
    assert refunded.total_revenue_generated == 1000.0
    assert refunded.deal_status == "lost"
    assert await repository.record_payment(TENANT, "nobody@example.com", 10.0, None, None, True) is None


@pytest.mark.asyncio
async def test_reversal_decides_lost_in_the_update():
    """Test that the cleared-cash status is applied only when the update empties the cash."""
    repository = PostgresProspectRepository()
    await repository.find_or_create(TENANT, PROSPECT)
    await repository.record_payment(TENANT, PROSPECT, 1000.0, date(2026, 3, 4), "closed_won", True)

    partial = await repository.record_payment(
        TENANT, PROSPECT, -600.0, None, None, False, status_when_cleared="lost"
    )
    cleared = await repository.record_payment(
        TENANT, PROSPECT, -600.0, None, None, False, status_when_cleared="lost"
    )

    assert partial.total_cash_collected == 400.0
    assert partial.deal_status == "closed_won"
    assert cleared.total_cash_collected == 0.0
    assert cleared.deal_status == "lost"


@pytest.mark.asyncio
async def test_prospect_set_status_keeps_row():
    """Test that deactivating a prospect is a soft status change."""
    repository = PostgresProspectRepository()
    await repository.find_or_create(TENANT, PROSPECT)

    await repository.set_status(TENANT, PROSPECT, "inactive")

    prospect = await repository.get(TENANT, PROSPECT)
    assert prospect is not None
    assert prospect.status == "inactive"


@pytest.mark.asyncio
async def test_audit_log_append_and_list():
    """Test that a tenant's audit entries are returned in chronological order."""
    repository = PostgresAuditLogRepository()
    for minute, new_value in ((5, "show"), (0, "waiting_for_outcome")):
        await repository.append(
            AuditEntry(
                audit_id=f"a-{minute}",
                timestamp=at(16, minute),
                tenant_id=TENANT,
                entity_type="call",
                entity_id="call-1",
                action="state_change",
                trigger_source="timeout_sweeper",
                field_changed="attendance_state",
                new_value=new_value,
                metadata={"event_id": "evt-1"},
            )
        )

    await repository.append(
        AuditEntry(
            audit_id="a-other",
            timestamp=at(16, 1),
            tenant_id="globex",
            entity_type="call",
            entity_id="call-1",
            action="updated",
            trigger_source="admin",
        )
    )

    trail = await repository.list_for_entity(TENANT, "call", "call-1")

    assert [entry.new_value for entry in trail] == ["waiting_for_outcome", "show"]
    assert trail[0].metadata == {"event_id": "evt-1"}


@pytest.mark.asyncio
async def test_cost_total_for_tenant():
    """Test cost aggregation, including an empty tenant."""
    repository = PostgresCostRecordRepository()
    await repository.append(
        CostRecord(
            cost_id="c-1",
            timestamp=at(16),
            tenant_id=TENANT,
            call_id="call-1",
            model="claude",
            input_tokens=1000,
            output_tokens=500,
            input_cost_usd=0.003,
            output_cost_usd=0.0075,
            total_cost_usd=0.0105,
            processing_time_ms=1200,
        )
    )

    assert await repository.total_for_tenant(TENANT) == pytest.approx(0.0105)
    assert await repository.total_for_tenant("other") == 0.0
