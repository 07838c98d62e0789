"""Call type value object."""

from enum import Enum


class CallType(str, Enum):
    """Call type, fixed when the call record is created."""

    FIRST_CALL = "first_call"
    FOLLOW_UP = "follow_up"
    RESCHEDULED_FIRST = "rescheduled_first"
    RESCHEDULED_FOLLOW_UP = "rescheduled_follow_up"

    @property
    def is_follow_up_family(self) -> bool:
        """Whether the prospect already had a show when this lineage started."""
        return self in (CallType.FOLLOW_UP, CallType.RESCHEDULED_FOLLOW_UP)

    @property
    def is_reschedule(self) -> bool:
        return self in (CallType.RESCHEDULED_FIRST, CallType.RESCHEDULED_FOLLOW_UP)
