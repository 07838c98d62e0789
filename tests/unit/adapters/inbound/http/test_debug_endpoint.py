"""Unit tests for debug endpoint."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from call_tracker.adapters.inbound.http.routes import router
from call_tracker.infrastructure.config.settings import settings
from call_tracker.infrastructure.wiring.dependencies import get_services
from tests.unit.support import TENANT, make_event


@pytest.fixture
def client(services):
    """Create test client."""
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_services] = lambda: services
    return TestClient(app)


@pytest.mark.asyncio
async def test_debug_endpoint_disabled_returns_404(client):
    """Test that debug endpoint returns 404 when DEBUG_MODE is disabled."""
    with patch.object(settings, "debug_mode", False):
        response = client.get(f"/debug/calls/{TENANT}/call-1/audit")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "disabled" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_debug_endpoint_enabled_returns_audit_trail(client, calendar, services):
    """Test that debug endpoint returns the call and its audit trail when DEBUG_MODE is enabled."""
    calendar.publish(make_event())
    client.post(f"/webhooks/calendar/{TENANT}", headers={"X-Goog-Resource-State": "exists"})
    call = await services.call_repository.find_latest_by_event(TENANT, "evt-1")
    client.post(f"/admin/calls/{TENANT}/{call.call_id}/outcome", json={"outcome": "no_recording"})
    await services.audit_trail.record("globex", "call", call.call_id, "updated", "admin", field_changed="closer_email")

    with patch.object(settings, "debug_mode", True):
        response = client.get(f"/debug/calls/{TENANT}/{call.call_id}/audit")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["call"]["attendance_state"] == "no_recording"
    assert [entry["action"] for entry in data["audit"]] == ["created", "state_change"]
    assert data["audit"][1]["trigger_source"] == "admin"


@pytest.mark.asyncio
async def test_debug_endpoint_unknown_call(client):
    """Test that an unknown call is a 404 even in debug mode."""
    with patch.object(settings, "debug_mode", True):
        response = client.get(f"/debug/calls/{TENANT}/missing/audit")
    assert response.status_code == status.HTTP_404_NOT_FOUND
