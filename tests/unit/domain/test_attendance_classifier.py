"""Unit tests for attendance classification rules."""

from datetime import timedelta

import pytest

from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_classifier import (
    CalendarAction,
    classify_calendar_event,
    classify_transcript,
    is_outcome_overdue,
)
from call_tracker.domain.services.attendance_state_machine import Trigger
from call_tracker.domain.value_objects.attendance_state import AttendanceState
from call_tracker.domain.value_objects.call_type import CallType
from call_tracker.domain.value_objects.transcript import Transcript, TranscriptThresholds
from tests.unit.support import PROSPECT, at, make_event

THRESHOLDS = TranscriptThresholds(min_length=50, min_speakers=2)


def _call(state=None, start=None, minutes=60) -> Call:
    start = start or at(15)
    return Call(
        call_id="call-1",
        tenant_id="acme",
        prospect_email=PROSPECT,
        scheduled_start=start,
        scheduled_end=start + timedelta(minutes=minutes),
        call_type=CallType.FIRST_CALL,
        attendance_state=state,
        calendar_event_id="evt-1",
    )


def test_missing_transcript_is_ghosted():
    """Test that no transcript means the prospect did not show."""
    verdict = classify_transcript(None, THRESHOLDS)
    assert verdict.state == AttendanceState.GHOSTED
    assert verdict.trigger == Trigger.TRANSCRIPT_EMPTY


def test_short_transcript_is_ghosted():
    """Test that a transcript under the minimum length is not a conversation."""
    verdict = classify_transcript(Transcript("call-1", character_length=49, speaker_count=2), THRESHOLDS)
    assert verdict.state == AttendanceState.GHOSTED
    assert verdict.reason == "transcript_too_short"


def test_transcript_at_minimum_length_is_show():
    """Test that the minimum length itself counts as substantive."""
    verdict = classify_transcript(Transcript("call-1", character_length=50, speaker_count=2), THRESHOLDS)
    assert verdict.is_show
    assert verdict.trigger == Trigger.TRANSCRIPT_VALID


def test_single_speaker_is_ghosted():
    """Test that a closer talking alone is a ghost."""
    verdict = classify_transcript(Transcript("call-1", character_length=5000, speaker_count=1), THRESHOLDS)
    assert verdict.state == AttendanceState.GHOSTED
    assert verdict.reason == "single_speaker"


def test_unknown_speaker_count_uses_length_only():
    """Test that providers without diarization are judged by length."""
    verdict = classify_transcript(Transcript("call-1", character_length=400), THRESHOLDS)
    assert verdict.is_show


def test_thresholds_validate():
    """Test that invalid thresholds are rejected."""
    with pytest.raises(ValueError):
        TranscriptThresholds(min_length=-1, min_speakers=2)
    with pytest.raises(ValueError):
        TranscriptThresholds(min_length=10, min_speakers=0)


def test_cancelled_event_cancels_pending_call():
    """Test that a cancelled event cancels an unresolved call."""
    assert classify_calendar_event(_call(), make_event(status="cancelled")) == CalendarAction.CANCEL


def test_declined_attendee_cancels_pending_call():
    """Test that a declined invitation counts as a cancellation."""
    assert classify_calendar_event(_call(), make_event(declined=True)) == CalendarAction.CANCEL


def test_cancellation_wins_over_move():
    """Test that a cancelled revision with a new start is a cancellation, not a reschedule."""
    event = make_event(status="cancelled", start=at(17))
    assert classify_calendar_event(_call(), event) == CalendarAction.CANCEL


def test_moved_event_reschedules_pending_call():
    """Test that a new start time reschedules the call."""
    waiting = _call(state=AttendanceState.WAITING_FOR_OUTCOME)
    assert classify_calendar_event(waiting, make_event(start=at(17))) == CalendarAction.RESCHEDULE


def test_changed_duration_updates_details():
    """Test that a changed end time is a plain update."""
    assert classify_calendar_event(_call(), make_event(minutes=45)) == CalendarAction.UPDATE


def test_unchanged_event_needs_nothing():
    """Test that an identical revision changes nothing."""
    assert classify_calendar_event(_call(), make_event()) == CalendarAction.NONE


def test_terminal_call_ignores_cancellation():
    """Test that a held call is not cancelled afterwards."""
    held = _call(state=AttendanceState.SHOW)
    assert classify_calendar_event(held, make_event(status="cancelled")) == CalendarAction.NONE


def test_terminal_call_with_new_slot_is_recreated():
    """Test that a reused event id after an outcome creates a new call."""
    ghosted = _call(state=AttendanceState.GHOSTED)
    assert classify_calendar_event(ghosted, make_event(start=at(15, day=9))) == CalendarAction.RECREATE


def test_cancelled_call_confirmed_again_is_recreated():
    """Test that a re-confirmed cancellation is a new booking even at the same slot."""
    cancelled = _call(state=AttendanceState.CANCELED)
    assert classify_calendar_event(cancelled, make_event()) == CalendarAction.RECREATE
    assert classify_calendar_event(cancelled, make_event(status="cancelled")) == CalendarAction.NONE


def test_rescheduled_call_is_never_recreated():
    """Test that the original of a reschedule stays put."""
    moved = _call(state=AttendanceState.RESCHEDULED)
    assert classify_calendar_event(moved, make_event(start=at(18))) == CalendarAction.NONE


def test_outcome_overdue_after_grace():
    """Test the grace period boundary."""
    waiting = _call(state=AttendanceState.WAITING_FOR_OUTCOME)
    grace = timedelta(minutes=120)
    assert not is_outcome_overdue(waiting, at(17, 59), grace)
    assert is_outcome_overdue(waiting, at(18), grace)
    assert not is_outcome_overdue(_call(), at(23), grace)
