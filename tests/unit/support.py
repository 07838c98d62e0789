"""Fakes and builders shared by unit tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from call_tracker.adapters.outbound.idempotency.in_memory_idempotency_store import (
    InMemoryIdempotencyStore,
)
from call_tracker.adapters.outbound.persistence import (
    InMemoryAuditLogRepository,
    InMemoryCallRepository,
    InMemoryCostRecordRepository,
    InMemoryProspectRepository,
)
from call_tracker.application.dtos.alert import Alert
from call_tracker.application.dtos.processing import CalendarNotification
from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.application.ports.calendar_client import CalendarClient
from call_tracker.application.ports.transcript_client import TranscriptClient
from call_tracker.application.use_cases.retry import RetryPolicy
from call_tracker.domain.errors import CollaboratorUnavailableError
from call_tracker.domain.value_objects.calendar_event import CalendarEvent, EventAttendee
from call_tracker.domain.value_objects.transcript import Transcript
from call_tracker.infrastructure.config.settings import Settings
from call_tracker.infrastructure.wiring.dependencies import build_services

TENANT = "acme"
CLOSER = "closer@acme.com"
PROSPECT = "jane.doe@example.com"

FAST_RETRY = RetryPolicy(max_attempts=2, base_delay_seconds=0.0, max_delay_seconds=0.0, timeout_seconds=None)


def at(hour: int, minute: int = 0, day: int = 2) -> datetime:
    """Return a UTC datetime on March ``day``, 2026."""
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def make_event(
    event_id: str = "evt-1",
    revision: str = "r1",
    start: Optional[datetime] = None,
    minutes: int = 60,
    updated_at: Optional[datetime] = None,
    status: str = "confirmed",
    summary: str = "Strategy Call",
    prospect_email: Optional[str] = PROSPECT,
    prospect_name: Optional[str] = "Jane Doe",
    organizer: str = CLOSER,
    declined: bool = False,
    call_id: Optional[str] = None,
) -> CalendarEvent:
    """Build a calendar event revision with a closer and one prospect."""
    start = start or at(15)
    attendees = [EventAttendee(email=organizer, is_organizer=True, response_status="accepted")]
    if prospect_email:
        attendees.append(
            EventAttendee(
                email=prospect_email,
                display_name=prospect_name,
                response_status="declined" if declined else "accepted",
            )
        )
    return CalendarEvent(
        event_id=event_id,
        revision=revision,
        status=status,
        start=start,
        end=start + timedelta(minutes=minutes),
        updated_at=updated_at or at(10),
        summary=summary,
        organizer_email=organizer,
        attendees=tuple(attendees),
        call_id=call_id,
    )


def notification(resource_state: str = "exists", tenant_id: str = TENANT) -> CalendarNotification:
    """Build a calendar push notification."""
    return CalendarNotification(
        tenant_id=tenant_id,
        resource_state=resource_state,
        channel_id="channel-1",
        resource_id="resource-1",
        message_number="1",
    )


class FakeCalendarClient(CalendarClient):
    """Calendar collaborator whose state tests set directly."""

    def __init__(self) -> None:
        self.events: dict[str, CalendarEvent] = {}
        self.changed: list[CalendarEvent] = []
        self.fail_list = False
        self.fail_get = False
        self.list_calls = 0

    def publish(self, *events: CalendarEvent) -> None:
        """Make ``events`` the current revisions and the next changed batch."""
        for event in events:
            self.events[event.event_id] = event
        self.changed = list(events)

    def set_current(self, event: CalendarEvent) -> None:
        """Change the authoritative revision without a notification."""
        self.events[event.event_id] = event

    async def list_changed_events(self, tenant: TenantContext, updated_since: datetime) -> list[CalendarEvent]:
        self.list_calls += 1
        if self.fail_list:
            raise CollaboratorUnavailableError("calendar unavailable")
        return list(self.changed)

    async def get_event(self, tenant: TenantContext, event_id: str) -> Optional[CalendarEvent]:
        if self.fail_get:
            raise CollaboratorUnavailableError("calendar unavailable")
        return self.events.get(event_id)


class FakeTranscriptClient(TranscriptClient):
    """Transcript collaborator keyed by call id."""

    def __init__(self) -> None:
        self.transcripts: dict[str, Transcript] = {}

    async def fetch_transcript(self, tenant: TenantContext, call_id: str) -> Optional[Transcript]:
        return self.transcripts.get(call_id)


class RecordingAlertSink(AlertSink):
    """Alert sink that keeps every alert."""

    def __init__(self) -> None:
        self.alerts: list[Alert] = []

    async def send(self, alert: Alert) -> None:
        self.alerts.append(alert)


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment's .env file."""
    values = {
        "repository_backend": "in_memory",
        "idempotency_backend": "in_memory",
        "grace_period_minutes": 120,
        "min_transcript_length": 50,
        "min_speakers": 2,
        "calendar_filter_words": "*",
        "tenant_overrides": {},
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_services(calendar, transcripts, alerts, call_repository=None, **setting_overrides):
    """Wire every use case around in-memory adapters and the given fakes."""
    return build_services(
        make_settings(**setting_overrides),
        call_repository=call_repository or InMemoryCallRepository(),
        prospect_repository=InMemoryProspectRepository(),
        audit_log_repository=InMemoryAuditLogRepository(),
        cost_record_repository=InMemoryCostRecordRepository(),
        idempotency_store=InMemoryIdempotencyStore(),
        calendar_client=calendar,
        transcript_client=transcripts,
        alert_sink=alerts,
        retry_policy=FAST_RETRY,
    )

