"""Normalized calendar event value objects."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

CANCELLED_STATUS = "cancelled"
DECLINED_RESPONSE = "declined"


@dataclass(frozen=True)
class EventAttendee:
    """An attendee as reported by the calendar provider."""

    email: str
    display_name: Optional[str] = None
    is_organizer: bool = False
    response_status: str = "needsAction"  # needsAction | declined | tentative | accepted


@dataclass(frozen=True)
class CalendarEvent:
    """Authoritative state of one calendar event revision."""

    event_id: str
    revision: str  # provider ETag
    status: str = "confirmed"  # confirmed | tentative | cancelled
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    summary: str = ""
    organizer_email: Optional[str] = None
    attendees: tuple[EventAttendee, ...] = ()
    call_id: Optional[str] = None  # private extended property, if the booking flow set one
    deleted: bool = False

    @property
    def is_cancelled(self) -> bool:
        return self.deleted or self.status == CANCELLED_STATUS

    def declined_attendees(self) -> list[EventAttendee]:
        """Return attendees whose response is ``declined``."""
        return [a for a in self.attendees if a.response_status == DECLINED_RESPONSE]

    def prospect_attendee(self) -> Optional[EventAttendee]:
        """
        Find the prospect among the attendees.

        The organizer is the closer; the first remaining attendee is the prospect.

        Returns:
            Prospect attendee, or None if only the organizer is invited
        """
        organizer = (self.organizer_email or "").lower()
        for attendee in self.attendees:
            if attendee.is_organizer:
                continue
            if attendee.email and attendee.email.lower() == organizer:
                continue
            return attendee
        return None
