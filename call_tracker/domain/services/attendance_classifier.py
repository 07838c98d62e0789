"""Attendance classification rules.

Pure functions: given what the calendar and transcript collaborators report,
decide what happened to a call. No I/O here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_state_machine import Trigger
from call_tracker.domain.value_objects.attendance_state import AttendanceState
from call_tracker.domain.value_objects.calendar_event import CalendarEvent
from call_tracker.domain.value_objects.transcript import Transcript, TranscriptThresholds


@dataclass(frozen=True)
class TranscriptVerdict:
    """Outcome of evaluating a transcript."""

    state: AttendanceState
    trigger: Trigger
    reason: str

    @property
    def is_show(self) -> bool:
        return self.state == AttendanceState.SHOW


def classify_transcript(
    transcript: Optional[Transcript], thresholds: TranscriptThresholds
) -> TranscriptVerdict:
    """
    Decide whether a transcript represents a real conversation.

    Rules, in order:
    1. No transcript or zero length -> ghosted
    2. Shorter than ``min_length`` characters -> ghosted
    3. Fewer than ``min_speakers`` distinct speakers -> ghosted
    4. Otherwise -> show

    A transcript exactly at ``min_length`` counts as substantive.

    Args:
        transcript: Transcript summary, or None
        thresholds: Tenant thresholds

    Returns:
        TranscriptVerdict with target state, trigger, and reason
    """
    if transcript is None or transcript.character_length <= 0:
        return TranscriptVerdict(AttendanceState.GHOSTED, Trigger.TRANSCRIPT_EMPTY, "no_transcript")

    if transcript.character_length < thresholds.min_length:
        return TranscriptVerdict(
            AttendanceState.GHOSTED, Trigger.TRANSCRIPT_EMPTY, "transcript_too_short"
        )

    if transcript.speaker_count is not None and transcript.speaker_count < thresholds.min_speakers:
        return TranscriptVerdict(AttendanceState.GHOSTED, Trigger.TRANSCRIPT_EMPTY, "single_speaker")

    return TranscriptVerdict(AttendanceState.SHOW, Trigger.TRANSCRIPT_VALID, "valid_conversation")


class CalendarAction(str, Enum):
    """What a calendar revision means for an existing call record."""

    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    UPDATE = "update"
    RECREATE = "recreate"
    NONE = "none"


def classify_calendar_event(call: Call, event: CalendarEvent) -> CalendarAction:
    """
    Decide what a calendar revision implies for the call it references.

    Cancellation (deleted, status ``cancelled`` or a declined attendee) wins over
    a start-time change seen in the same revision.

    Args:
        call: Latest call record stored for the event
        event: Authoritative event revision

    Returns:
        CalendarAction to apply
    """
    cancelled = event.is_cancelled or bool(event.declined_attendees())

    if call.is_pre_outcome:
        if cancelled:
            return CalendarAction.CANCEL
        if event.start is not None and event.start != call.scheduled_start:
            return CalendarAction.RESCHEDULE
        if _details_changed(call, event):
            return CalendarAction.UPDATE
        return CalendarAction.NONE

    if cancelled:
        return CalendarAction.NONE

    if event.start is None:
        return CalendarAction.NONE

    # A cancelled booking confirmed again is a new booking at any slot.
    if call.attendance_state == AttendanceState.CANCELED:
        return CalendarAction.RECREATE

    # Other terminal calls: the event id was reused for a new booking only when
    # it is live at another slot (follow-up on the same invite).
    if call.attendance_state != AttendanceState.RESCHEDULED and event.start != call.scheduled_start:
        return CalendarAction.RECREATE
    return CalendarAction.NONE


def _details_changed(call: Call, event: CalendarEvent) -> bool:
    if event.end is not None and event.end != call.scheduled_end:
        return True
    prospect = event.prospect_attendee()
    if prospect is not None and prospect.email.lower() != call.prospect_email.lower():
        return True
    return False


def is_outcome_overdue(call: Call, now: datetime, grace: timedelta) -> bool:
    """
    Check whether a waiting call has run past its grace period.

    Args:
        call: Call record
        now: Current time
        grace: Tenant grace period after scheduled end

    Returns:
        True if the call is waiting for an outcome and end + grace has elapsed
    """
    if call.attendance_state != AttendanceState.WAITING_FOR_OUTCOME:
        return False
    return call.scheduled_end + grace <= now
