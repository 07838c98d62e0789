"""Unit tests for bounded retry."""

import asyncio

import pytest

from call_tracker.application.use_cases.retry import RetryPolicy, retry_async
from call_tracker.domain.errors import CollaboratorUnavailableError

POLICY = RetryPolicy(max_attempts=3, base_delay_seconds=0.5, max_delay_seconds=0.75, timeout_seconds=None)


class Flaky:
    def __init__(self, failures, error=ConnectionError):
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error("boom")
        return "ok"


@pytest.fixture
def sleeps():
    """Collect requested backoff delays instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(delay):
        sleeps.append(delay)

    return _sleep


@pytest.mark.asyncio
async def test_transient_failures_are_retried(sleeps, fake_sleep):
    """Test that transient failures are retried with capped backoff."""
    operation = Flaky(failures=2)

    result = await retry_async(operation, POLICY, "flaky", sleep=fake_sleep)

    assert result == "ok"
    assert operation.calls == 3
    assert sleeps == [0.5, 0.75]


@pytest.mark.asyncio
async def test_non_transient_error_propagates_immediately(fake_sleep):
    """Test that programming errors are not retried."""
    operation = Flaky(failures=1, error=KeyError)

    with pytest.raises(KeyError):
        await retry_async(operation, POLICY, "broken", sleep=fake_sleep)
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_exhaustion_raises_collaborator_unavailable(sleeps, fake_sleep):
    """Test that running out of attempts surfaces as collaborator unavailability."""
    operation = Flaky(failures=10)
    logged = []

    with pytest.raises(CollaboratorUnavailableError) as exc_info:
        await retry_async(
            operation, POLICY, "calendar_get_event", logger=lambda *a, **kw: logged.append(kw), sleep=fake_sleep
        )

    assert operation.calls == 3
    assert len(sleeps) == 2
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert [entry["attempt"] for entry in logged] == [1, 2, 3]


@pytest.mark.asyncio
async def test_slow_attempt_times_out():
    """Test that an attempt exceeding the timeout counts as transient."""
    async def slow():
        await asyncio.sleep(1)

    policy = RetryPolicy(max_attempts=1, timeout_seconds=0.01)

    with pytest.raises(CollaboratorUnavailableError):
        await retry_async(slow, policy, "slow")
