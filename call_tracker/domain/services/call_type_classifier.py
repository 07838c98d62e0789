"""Call type classification.

Evaluated once, when the call record is created, from the prospect's history
as of that moment. Never recomputed.
"""

from call_tracker.domain.value_objects.call_type import CallType


def classify_call_type(has_prior_show: bool, is_reschedule: bool) -> CallType:
    """
    Classify a new call.

    Args:
        has_prior_show: Whether the prospect had at least one show before this call
        is_reschedule: Whether this record was created by a reschedule transition

    Returns:
        CallType for the new record
    """
    if has_prior_show:
        return CallType.RESCHEDULED_FOLLOW_UP if is_reschedule else CallType.FOLLOW_UP
    return CallType.RESCHEDULED_FIRST if is_reschedule else CallType.FIRST_CALL


def successor_call_type(predecessor: CallType) -> CallType:
    """Call type of the record created when ``predecessor`` is rescheduled."""
    return classify_call_type(predecessor.is_follow_up_family, is_reschedule=True)
