"""
Attendance state machine.

Every call is in exactly one attendance state. Terminal states have no
outgoing transitions.
"""

from enum import Enum
from typing import Optional

from call_tracker.domain.errors import InvalidTransitionError
from call_tracker.domain.value_objects.attendance_state import AttendanceState


class Trigger(str, Enum):
    """What caused a transition."""

    APPOINTMENT_TIME_PASSED = "appointment_time_passed"
    CALENDAR_CANCELED = "calendar_cancelled_or_deleted_or_declined"
    CALENDAR_MOVED = "calendar_moved_and_not_yet_held"
    TRANSCRIPT_VALID = "transcript_received_valid"
    TRANSCRIPT_EMPTY = "transcript_received_empty_or_one_speaker"
    TRANSCRIPT_TIMEOUT = "transcript_timeout"
    RECORDING_FAILURE = "system_recording_failure"
    CLOSER_DOUBLE_BOOKED = "closer_double_booked"


_UNSET_OR_LEGACY: dict[Trigger, AttendanceState] = {
    Trigger.APPOINTMENT_TIME_PASSED: AttendanceState.WAITING_FOR_OUTCOME,
    Trigger.CALENDAR_CANCELED: AttendanceState.CANCELED,
    Trigger.CALENDAR_MOVED: AttendanceState.RESCHEDULED,
    Trigger.TRANSCRIPT_VALID: AttendanceState.SHOW,
    Trigger.TRANSCRIPT_EMPTY: AttendanceState.GHOSTED,
    Trigger.RECORDING_FAILURE: AttendanceState.NO_RECORDING,
    Trigger.CLOSER_DOUBLE_BOOKED: AttendanceState.OVERBOOKED,
}

TRANSITIONS: dict[Optional[AttendanceState], dict[Trigger, AttendanceState]] = {
    None: _UNSET_OR_LEGACY,
    AttendanceState.SCHEDULED: _UNSET_OR_LEGACY,
    AttendanceState.WAITING_FOR_OUTCOME: {
        Trigger.CALENDAR_CANCELED: AttendanceState.CANCELED,
        Trigger.CALENDAR_MOVED: AttendanceState.RESCHEDULED,
        Trigger.TRANSCRIPT_VALID: AttendanceState.SHOW,
        Trigger.TRANSCRIPT_EMPTY: AttendanceState.GHOSTED,
        Trigger.TRANSCRIPT_TIMEOUT: AttendanceState.GHOSTED,
        Trigger.RECORDING_FAILURE: AttendanceState.NO_RECORDING,
        Trigger.CLOSER_DOUBLE_BOOKED: AttendanceState.OVERBOOKED,
    },
}


def resolve_transition(current: Optional[AttendanceState], trigger: Trigger) -> AttendanceState:
    """
    Look up the state a trigger moves a call to.

    Args:
        current: Current attendance state (None when unset)
        trigger: What happened

    Returns:
        Target attendance state

    Raises:
        InvalidTransitionError: If the trigger is not valid from ``current``
    """
    target = TRANSITIONS.get(current, {}).get(trigger)
    if target is None:
        raise InvalidTransitionError(current, trigger.value)
    return target


def can_transition(current: Optional[AttendanceState], trigger: Trigger) -> bool:
    """Return True if ``trigger`` is valid from ``current``."""
    return trigger in TRANSITIONS.get(current, {})
