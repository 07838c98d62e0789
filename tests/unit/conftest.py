"""Unit test fixtures."""

import pytest

from tests.unit.support import (
    FakeCalendarClient,
    FakeTranscriptClient,
    RecordingAlertSink,
    make_services,
)


@pytest.fixture
def calendar():
    """Create fake calendar collaborator."""
    return FakeCalendarClient()


@pytest.fixture
def transcripts():
    """Create fake transcript collaborator."""
    return FakeTranscriptClient()


@pytest.fixture
def alerts():
    """Create recording alert sink."""
    return RecordingAlertSink()


@pytest.fixture
def services(calendar, transcripts, alerts):
    """Create services wired with fakes and in-memory adapters."""
    return make_services(calendar, transcripts, alerts)
