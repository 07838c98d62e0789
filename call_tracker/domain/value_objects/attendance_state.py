"""Attendance state value object.

A call's attendance is ``None`` while it is freshly scheduled, then moves to
``waiting_for_outcome`` and finally to exactly one terminal state.
"""

from enum import Enum
from typing import Optional, Union

from call_tracker.domain.errors import UnknownAttendanceStateError


class AttendanceState(str, Enum):
    """Closed set of attendance states."""

    SCHEDULED = "scheduled"  # legacy rows only, new calls start unset
    WAITING_FOR_OUTCOME = "waiting_for_outcome"

    SHOW = "show"
    GHOSTED = "ghosted"
    CANCELED = "canceled"
    RESCHEDULED = "rescheduled"
    NO_RECORDING = "no_recording"
    OVERBOOKED = "overbooked"

    @property
    def is_terminal(self) -> bool:
        """Whether the state can never change again."""
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        AttendanceState.SHOW,
        AttendanceState.GHOSTED,
        AttendanceState.CANCELED,
        AttendanceState.RESCHEDULED,
        AttendanceState.NO_RECORDING,
        AttendanceState.OVERBOOKED,
    }
)

# None is the unset state of a newly scheduled call
PRE_OUTCOME_STATES = frozenset({None, AttendanceState.SCHEDULED, AttendanceState.WAITING_FOR_OUTCOME})


def is_pre_outcome(state: Optional[AttendanceState]) -> bool:
    """Return True if the call has not reached any outcome yet."""
    return state in PRE_OUTCOME_STATES


def is_terminal(state: Optional[AttendanceState]) -> bool:
    """Return True if ``state`` is one of the six terminal states."""
    return state is not None and state in TERMINAL_STATES


def parse_attendance_state(
    value: Union[AttendanceState, str, None],
) -> Optional[AttendanceState]:
    """
    Parse a raw attendance value at a storage or API boundary.

    Args:
        value: Enum member, its string value, or None for the unset state

    Returns:
        Parsed attendance state (None stays None)

    Raises:
        UnknownAttendanceStateError: If the value is not a known state
    """
    if value is None or isinstance(value, AttendanceState):
        return value
    try:
        return AttendanceState(value)
    except ValueError as err:
        raise UnknownAttendanceStateError(value) from err
