"""Google Calendar collaborator adapter.

Uses a Google Cloud service account to read the closers' calendars through
the Calendar API v3. The discovery client is synchronous, so every request
runs in the default thread pool.
"""

import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Optional

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.application.ports.calendar_client import CalendarClient
from call_tracker.domain.errors import CollaboratorUnavailableError
from call_tracker.domain.value_objects.calendar_event import CalendarEvent, EventAttendee

logger = logging.getLogger("call_tracker.calendar")

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
MAX_RESULTS = 250

# Calendar not shared with the service account, or access revoked
_INACCESSIBLE = (403, 404)
_GONE = (404, 410)


def _status_of(error: HttpError) -> int:
    return int(getattr(error.resp, "status", 0) or 0)


def parse_event_time(value: Optional[dict[str, Any]]) -> Optional[datetime]:
    """
    Parse a Calendar API time object into a UTC datetime.

    Args:
        value: ``{"dateTime": ...}`` for timed events or ``{"date": ...}`` for all-day events

    Returns:
        Timezone-aware UTC datetime, or None
    """
    if not value:
        return None
    raw = value.get("dateTime") or value.get("date")
    if not raw:
        return None
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_event(raw: dict[str, Any]) -> CalendarEvent:
    """
    Convert a raw Calendar API event into a CalendarEvent.

    Args:
        raw: Event resource as returned by events.list / events.get

    Returns:
        Normalized event
    """
    organizer = raw.get("organizer") or raw.get("creator") or {}
    attendees = tuple(
        EventAttendee(
            email=(attendee.get("email") or "").lower(),
            display_name=attendee.get("displayName"),
            is_organizer=bool(attendee.get("organizer", False)),
            response_status=attendee.get("responseStatus", "needsAction"),
        )
        for attendee in raw.get("attendees", [])
        if attendee.get("email") and not attendee.get("resource", False)
    )
    private = (raw.get("extendedProperties") or {}).get("private") or {}
    status = raw.get("status", "confirmed")

    return CalendarEvent(
        event_id=raw["id"],
        revision=str(raw.get("etag") or raw.get("updated") or raw.get("sequence", "")),
        status=status,
        start=parse_event_time(raw.get("start")),
        end=parse_event_time(raw.get("end")),
        updated_at=parse_event_time({"dateTime": raw["updated"]}) if raw.get("updated") else None,
        summary=raw.get("summary", ""),
        organizer_email=(organizer.get("email") or "").lower() or None,
        attendees=attendees,
        call_id=private.get("call_id"),
    )


def latest_per_event(events: list[CalendarEvent]) -> list[CalendarEvent]:
    """
    Keep one copy per event id, the most recently updated.

    The same event shows up on every calendar it is on (organizer and
    attendee closers of the same tenant).

    Args:
        events: Events collected from several calendars

    Returns:
        De-duplicated events, in first-seen order
    """
    seen: dict[str, CalendarEvent] = {}
    for event in events:
        existing = seen.get(event.event_id)
        if existing is None:
            seen[event.event_id] = event
        elif event.updated_at and (existing.updated_at is None or event.updated_at > existing.updated_at):
            seen[event.event_id] = event
    return list(seen.values())


class GoogleCalendarClient(CalendarClient):
    """CalendarClient backed by Google Calendar API v3."""

    def __init__(self, service_account_path: Optional[str] = None, service: Any = None) -> None:
        """
        Initialize Google calendar client.

        Args:
            service_account_path: Path to the service account JSON key
            service: Prebuilt discovery service (tests)
        """
        if service is not None:
            self._service = service
            return
        if not service_account_path:
            raise ValueError("GOOGLE_SERVICE_ACCOUNT_JSON is required for the Google calendar client")
        credentials = Credentials.from_service_account_file(service_account_path, scopes=SCOPES)
        self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)

    async def _run_in_executor(self, func, *args, **kwargs) -> Any:
        """Run a synchronous Google API call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def _execute(self, request: Any) -> dict[str, Any]:
        try:
            return await self._run_in_executor(request.execute)
        except HttpError as e:
            if _status_of(e) >= 500 or _status_of(e) == 429:
                raise CollaboratorUnavailableError(f"Google Calendar API error {_status_of(e)}") from e
            raise

    async def list_changed_events(
        self, tenant: TenantContext, updated_since: datetime
    ) -> list[CalendarEvent]:
        """
        List events updated since ``updated_since`` on every calendar of the tenant.

        Args:
            tenant: Tenant context carrying the calendar ids
            updated_since: Lower bound on the provider update time

        Returns:
            De-duplicated, normalized events (deleted ones included as cancelled)
        """
        if updated_since.tzinfo is None:
            updated_since = updated_since.replace(tzinfo=timezone.utc)

        collected: list[CalendarEvent] = []
        for calendar_id in tenant.calendar_ids:
            request = self._service.events().list(
                calendarId=calendar_id,
                updatedMin=updated_since.isoformat(),
                singleEvents=True,
                orderBy="updated",
                maxResults=MAX_RESULTS,
                showDeleted=True,
            )
            try:
                response = await self._execute(request)
            except HttpError as e:
                if _status_of(e) in _INACCESSIBLE:
                    logger.warning(
                        f"Cannot access calendar {calendar_id} for tenant {tenant.tenant_id}: {str(e)}"
                    )
                    continue
                raise
            collected.extend(normalize_event(raw) for raw in response.get("items", []))

        return latest_per_event(collected)

    async def get_event(self, tenant: TenantContext, event_id: str) -> Optional[CalendarEvent]:
        """
        Fetch the current revision of one event.

        Args:
            tenant: Tenant context carrying the calendar ids
            event_id: Provider event id

        Returns:
            Normalized event, or None if no calendar of the tenant knows it
        """
        found: list[CalendarEvent] = []
        for calendar_id in tenant.calendar_ids:
            request = self._service.events().get(calendarId=calendar_id, eventId=event_id)
            try:
                raw = await self._execute(request)
            except HttpError as e:
                if _status_of(e) in _GONE or _status_of(e) in _INACCESSIBLE:
                    continue
                raise
            found.append(normalize_event(raw))

        latest = latest_per_event(found)
        return latest[0] if latest else None
