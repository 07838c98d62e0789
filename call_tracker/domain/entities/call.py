"""Call entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from call_tracker.domain.value_objects.attendance_state import (
    AttendanceState,
    is_pre_outcome,
    is_terminal,
)
from call_tracker.domain.value_objects.call_type import CallType


@dataclass
class Call:
    """A scheduled sales call and its current attendance state."""

    call_id: str
    tenant_id: str
    prospect_email: str
    scheduled_start: datetime
    scheduled_end: datetime
    call_type: CallType
    attendance_state: Optional[AttendanceState] = None
    calendar_event_id: Optional[str] = None
    event_revision: Optional[str] = None
    event_updated_at: Optional[datetime] = None  # provider-reported update time of last applied revision
    rescheduled_from_call_id: Optional[str] = None
    rescheduled_to_call_id: Optional[str] = None
    transcript_ref: Optional[str] = None
    closer_email: Optional[str] = None
    prospect_name: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = datetime.now(timezone.utc)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.attendance_state)

    @property
    def is_pre_outcome(self) -> bool:
        return is_pre_outcome(self.attendance_state)

    def overlaps(self, other: "Call") -> bool:
        """
        Check whether two calls share any part of their time slot.

        Args:
            other: Another call

        Returns:
            True if the scheduled windows intersect
        """
        return self.scheduled_start < other.scheduled_end and other.scheduled_start < self.scheduled_end
