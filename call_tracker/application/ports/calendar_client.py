"""Calendar collaborator port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.domain.value_objects.calendar_event import CalendarEvent


class CalendarClient(ABC):
    """Source of truth for calendar event state.

    Push notifications carry no payload; this port fetches what actually
    changed.
    """

    @abstractmethod
    async def list_changed_events(
        self, tenant: TenantContext, updated_since: datetime
    ) -> list[CalendarEvent]:
        """Return events of the tenant's calendars updated since ``updated_since``.

        Deleted events are included with ``status == "cancelled"``.
        """

    @abstractmethod
    async def get_event(self, tenant: TenantContext, event_id: str) -> Optional[CalendarEvent]:
        """Return the current revision of one event, or None if the provider no longer knows it."""
