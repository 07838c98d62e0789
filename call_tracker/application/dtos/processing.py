"""Processing summary DTOs."""

from typing import Optional

from call_tracker.application.dtos.base import DTO


class CalendarNotification(DTO):
    """Headers-only resource-state change signal from the calendar provider."""

    tenant_id: str
    resource_state: Optional[str] = None  # sync | exists | not_exists
    channel_id: Optional[str] = None
    resource_id: Optional[str] = None
    message_number: Optional[str] = None


class ProcessingSummary(DTO):
    """Result of processing one calendar notification."""

    processed: int = 0
    skipped: int = 0
    errors: int = 0


class SweepSummary(DTO):
    """Result of one outcome-timeout sweep."""

    checked: int = 0
    waiting: int = 0
    timed_out: int = 0
    errors: int = 0
