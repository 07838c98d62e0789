"""Unit tests for HTTP routes."""

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from call_tracker.adapters.inbound.http.routes import router
from call_tracker.domain.value_objects.attendance_state import AttendanceState
from call_tracker.domain.value_objects.transcript import Transcript
from call_tracker.infrastructure.wiring.dependencies import get_services
from tests.unit.support import PROSPECT, TENANT, make_event

CALENDAR_HEADERS = {
    "X-Goog-Resource-State": "exists",
    "X-Goog-Channel-ID": "channel-1",
    "X-Goog-Resource-ID": "resource-1",
    "X-Goog-Message-Number": "7",
}


@pytest.fixture
def app(services):
    """Create FastAPI app with router and in-memory services."""
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_services] = lambda: services
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


async def _book(client, calendar, services):
    calendar.publish(make_event())
    response = client.post(f"/webhooks/calendar/{TENANT}", headers=CALENDAR_HEADERS)
    assert response.status_code == status.HTTP_200_OK
    return await services.call_repository.find_latest_by_event(TENANT, "evt-1")


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_calendar_webhook_acknowledges_and_processes(client, calendar, services):
    """Test calendar webhook acknowledges and creates the call in the background."""
    call = await _book(client, calendar, services)

    assert call.calendar_event_id == "evt-1"
    assert call.attendance_state is None


@pytest.mark.asyncio
async def test_calendar_webhook_sync_does_not_fetch(client, calendar):
    """Test that the sync handshake is acknowledged without fetching events."""
    response = client.post(
        f"/webhooks/calendar/{TENANT}",
        headers={**CALENDAR_HEADERS, "X-Goog-Resource-State": "sync"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}
    assert calendar.list_calls == 0


@pytest.mark.asyncio
async def test_calendar_webhook_acknowledges_even_when_calendar_fails(client, calendar, alerts):
    """Test that processing failures never reach the provider."""
    calendar.fail_list = True

    response = client.post(f"/webhooks/calendar/{TENANT}", headers=CALENDAR_HEADERS)

    assert response.status_code == status.HTTP_200_OK
    assert alerts.alerts[0].severity == "high"


@pytest.mark.asyncio
async def test_transcript_webhook(client, calendar, transcripts, services):
    """Test transcript webhook resolves the call."""
    call = await _book(client, calendar, services)
    transcripts.transcripts[call.call_id] = Transcript(call.call_id, character_length=900, speaker_count=2)

    response = client.post(f"/webhooks/transcript/{TENANT}", json={"call_id": call.call_id})

    assert response.status_code == status.HTTP_200_OK
    stored = await services.call_repository.get(TENANT, call.call_id)
    assert stored.attendance_state == AttendanceState.SHOW


@pytest.mark.asyncio
async def test_transcript_webhook_requires_call_id(client):
    """Test transcript webhook validates its body."""
    response = client.post(f"/webhooks/transcript/{TENANT}", json={})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_payment_webhook(client, calendar, services):
    """Test payment webhook updates the prospect ledger."""
    await _book(client, calendar, services)

    response = client.post(
        f"/webhooks/payment/{TENANT}",
        json={"prospect_email": PROSPECT, "amount": 2500.0, "payment_type": "deposit"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_cash_collected"] == 2500.0
    assert data["payment_count"] == 1
    assert data["deal_status"] == "closed_won"


@pytest.mark.asyncio
async def test_payment_webhook_errors(client):
    """Test payment webhook rejects bad amounts and unknown prospects."""
    bad_amount = client.post(f"/webhooks/payment/{TENANT}", json={"prospect_email": PROSPECT, "amount": -5})
    unknown = client.post(f"/webhooks/payment/{TENANT}", json={"prospect_email": PROSPECT, "amount": 5})

    assert bad_amount.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert unknown.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_admin_outcome(client, calendar, services):
    """Test recording an explicit outcome, then a conflicting one."""
    call = await _book(client, calendar, services)
    url = f"/admin/calls/{TENANT}/{call.call_id}/outcome"

    first = client.post(url, json={"outcome": "no_recording", "detail": "recorder crashed"})
    second = client.post(url, json={"outcome": "overbooked"})

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["attendance_state"] == "no_recording"
    assert second.status_code == status.HTTP_409_CONFLICT


@pytest.mark.asyncio
async def test_admin_outcome_validation(client):
    """Test admin outcome rejects unknown calls and outcomes."""
    unknown = client.post(f"/admin/calls/{TENANT}/missing/outcome", json={"outcome": "no_recording"})
    invalid = client.post(f"/admin/calls/{TENANT}/missing/outcome", json={"outcome": "show"})

    assert unknown.status_code == status.HTTP_404_NOT_FOUND
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_check_timeouts(client):
    """Test the on-demand sweep endpoint."""
    response = client.post("/admin/jobs/check-timeouts")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"checked": 0, "waiting": 0, "timed_out": 0, "errors": 0}


@pytest.mark.asyncio
async def test_list_calls(client, calendar, services):
    """Test listing a tenant's calls."""
    call = await _book(client, calendar, services)

    response = client.get(f"/admin/calls/{TENANT}")
    other = client.get("/admin/calls/globex")

    assert response.status_code == status.HTTP_200_OK
    assert [item["call_id"] for item in response.json()] == [call.call_id]
    assert response.json()[0]["call_type"] == "first_call"
    assert other.json() == []


@pytest.mark.asyncio
async def test_set_prospect_status(client, calendar, services):
    """Test deactivating a prospect keeps its ledger and is audited."""
    await _book(client, calendar, services)

    response = client.post(f"/admin/prospects/{TENANT}/{PROSPECT}/status", json={"status": "inactive"})
    unknown = client.post(f"/admin/prospects/{TENANT}/nobody@example.com/status", json={"status": "inactive"})
    invalid = client.post(f"/admin/prospects/{TENANT}/{PROSPECT}/status", json={"status": "deleted"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "inactive"
    assert response.json()["total_calls"] == 1
    assert unknown.status_code == status.HTTP_404_NOT_FOUND
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    trail = await services.audit_trail.trail(TENANT, "prospect", PROSPECT)
    assert trail[-1].field_changed == "status"
    assert (trail[-1].old_value, trail[-1].new_value) == ("active", "inactive")


@pytest.mark.asyncio
async def test_cost_summary(client, services):
    """Test the per-tenant AI cost summary."""
    await services.cost_tracker.record(TENANT, "call-1", "claude-sonnet", 1000, 500)

    response = client.get(f"/admin/costs/{TENANT}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["tenant_id"] == TENANT
    assert response.json()["total_cost_usd"] == pytest.approx(0.0105)
