"""Outcome timeout sweeper."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from call_tracker.application.dtos.alert import Alert
from call_tracker.application.dtos.processing import SweepSummary
from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.application.ports.calendar_client import CalendarClient
from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.application.use_cases.call_transitioner import CallTransitioner
from call_tracker.application.use_cases.process_calendar_notification import ProcessCalendarNotification
from call_tracker.application.use_cases.retry import NO_RETRY, RetryPolicy, retry_async
from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_classifier import CalendarAction, is_outcome_overdue
from call_tracker.domain.services.attendance_state_machine import Trigger

SOURCE = "timeout_sweeper"


class OutcomeTimeoutSweeper:
    """Periodically resolves calls whose outcome never arrived.

    Phase 1 moves unresolved calls whose end time has passed to
    waiting_for_outcome. Phase 2 ghosts waiting calls once the tenant's grace
    period has elapsed, after re-checking the calendar so that a cancellation
    or move that arrived late still takes precedence.
    """

    def __init__(
        self,
        call_repository: CallRepository,
        transitioner: CallTransitioner,
        tenant_resolver: Callable[[str], TenantContext],
        calendar_client: Optional[CalendarClient] = None,
        coordinator: Optional[ProcessCalendarNotification] = None,
        alert_sink: Optional[AlertSink] = None,
        retry_policy: RetryPolicy = NO_RETRY,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize outcome timeout sweeper.

        Args:
            call_repository: Call record store
            transitioner: Shared transition writer
            tenant_resolver: Maps a tenant id to its processing policy
            calendar_client: Calendar collaborator for the pre-timeout re-check
            coordinator: Notification coordinator used to apply what the re-check finds
            alert_sink: Optional alert channel
            retry_policy: Retry policy for the calendar re-check
            clock: Current-time provider (UTC)
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._calls = call_repository
        self._transitioner = transitioner
        self._tenant_resolver = tenant_resolver
        self._calendar = calendar_client
        self._coordinator = coordinator
        self._alert_sink = alert_sink
        self._retry_policy = retry_policy
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def _log(self, tenant_id: Optional[str], **kwargs: Any) -> None:
        if self._logger:
            self._logger(tenant_id, "sweeper", **kwargs)

    async def run_once(self, now: Optional[datetime] = None) -> SweepSummary:
        """
        Run one sweep.

        A sweep requested while another is still running is skipped.

        Args:
            now: Reference time (defaults to the clock)

        Returns:
            SweepSummary with checked, waiting, timed_out and error counts
        """
        if self._running:
            self._log(None, action="sweep_skipped", reason="previous_sweep_running")
            return SweepSummary()

        self._running = True
        try:
            return await self._sweep(now or self._clock())
        finally:
            self._running = False

    async def run_forever(self, interval_seconds: float) -> None:
        """
        Sweep every ``interval_seconds`` until cancelled.

        Args:
            interval_seconds: Pause between sweeps
        """
        self._log(None, action="sweeper_started", interval_seconds=interval_seconds)
        try:
            while True:
                try:
                    await self.run_once()
                except Exception as e:
                    self._log(None, level=logging.ERROR, action="sweep_failed", error=str(e))
                await asyncio.sleep(interval_seconds)
        finally:
            self._log(None, action="sweeper_stopped")

    async def _sweep(self, now: datetime) -> SweepSummary:
        checked = waiting = timed_out = errors = 0

        # Phase 1: scheduled time passed, outcome not known yet
        for call in await self._calls.find_pending_past_end(now):
            checked += 1
            try:
                moved = await self._transitioner.transition(
                    call,
                    Trigger.APPOINTMENT_TIME_PASSED,
                    SOURCE,
                    detail=f"ended at {call.scheduled_end.isoformat()}",
                )
            except Exception as e:
                errors += 1
                self._log(
                    call.tenant_id,
                    level=logging.ERROR,
                    action="waiting_failed",
                    call_id=call.call_id,
                    error=str(e),
                )
                continue
            if moved is not None:
                waiting += 1

        # Phase 2: grace period elapsed without an outcome
        tenants: dict[str, TenantContext] = {}
        for call in await self._calls.find_waiting(now):
            tenant = tenants.get(call.tenant_id)
            if tenant is None:
                tenant = tenants[call.tenant_id] = self._tenant_resolver(call.tenant_id)
            if not is_outcome_overdue(call, now, tenant.grace_period):
                continue

            checked += 1
            try:
                if await self._time_out(call, tenant, now):
                    timed_out += 1
            except Exception as e:
                errors += 1
                self._log(
                    call.tenant_id,
                    level=logging.ERROR,
                    action="timeout_failed",
                    call_id=call.call_id,
                    error=str(e),
                )

        summary = SweepSummary(checked=checked, waiting=waiting, timed_out=timed_out, errors=errors)
        self._log(None, action="sweep_completed", **summary.model_dump())

        if errors and self._alert_sink:
            await self._alert_sink.send(
                Alert(
                    severity="medium",
                    title="Outcome timeout sweep had errors",
                    details=f"{errors} of {checked} calls could not be processed",
                    suggested_action="Failed calls are retried on the next sweep",
                )
            )
        return summary

    async def _time_out(self, call: Call, tenant: TenantContext, now: datetime) -> bool:
        """Ghost one overdue call unless the calendar says otherwise."""
        if self._calendar is not None and call.calendar_event_id:
            event_id = call.calendar_event_id
            # A failing lookup propagates so the call is left for the next sweep
            event = await retry_async(
                lambda: self._calendar.get_event(tenant, event_id),
                self._retry_policy,
                "calendar_get_event",
                logger=self._logger,
            )
            if event is None:
                cancelled = await self._transitioner.transition(
                    call, Trigger.CALENDAR_CANCELED, SOURCE, detail="event_not_found"
                )
                self._log(
                    call.tenant_id,
                    action="event_gone",
                    call_id=call.call_id,
                    applied=cancelled is not None,
                )
                return False

            if self._coordinator is not None:
                action = await self._coordinator.reconcile(tenant, call, event)
                if action != CalendarAction.NONE:
                    self._log(
                        call.tenant_id,
                        action="calendar_precedence",
                        call_id=call.call_id,
                        calendar_action=action.value,
                    )
                    refreshed = await self._calls.get(call.tenant_id, call.call_id)
                    if refreshed is None or not is_outcome_overdue(refreshed, now, tenant.grace_period):
                        return False
                    call = refreshed

        result = await self._transitioner.transition(
            call,
            Trigger.TRANSCRIPT_TIMEOUT,
            SOURCE,
            detail=f"no outcome {tenant.grace_period_minutes} minutes after end",
        )
        return result is not None
