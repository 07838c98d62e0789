"""Calendar notification coordinator."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Callable, Optional

from call_tracker.application.dtos.alert import Alert
from call_tracker.application.dtos.processing import CalendarNotification, ProcessingSummary
from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.application.ports.calendar_client import CalendarClient
from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.application.ports.idempotency_store import IdempotencyStore, calendar_signal_key
from call_tracker.application.ports.prospect_repository import ProspectRepository
from call_tracker.application.use_cases.audit_trail import AuditTrail
from call_tracker.application.use_cases.call_transitioner import CallTransitioner
from call_tracker.application.use_cases.retry import NO_RETRY, RetryPolicy, retry_async
from call_tracker.domain.entities.call import Call
from call_tracker.domain.entities.prospect import UNKNOWN_PROSPECT_EMAIL, name_from_email
from call_tracker.domain.services.attendance_classifier import CalendarAction, classify_calendar_event
from call_tracker.domain.services.attendance_state_machine import Trigger
from call_tracker.domain.services.call_type_classifier import classify_call_type, successor_call_type
from call_tracker.domain.value_objects.calendar_event import CalendarEvent
from call_tracker.domain.value_objects.call_type import CallType

SOURCE = "calendar_webhook"
SYNC_STATE = "sync"
CHANGE_STATES = ("exists", "not_exists")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def cancellation_reason(event: CalendarEvent) -> str:
    """Describe why an event counts as cancelled."""
    if event.deleted:
        return "deleted"
    if event.is_cancelled:
        return "cancelled"
    declined = ",".join(a.email for a in event.declined_attendees())
    return f"declined:{declined}"


class _KeyedLocks:
    """asyncio locks keyed by (tenant, event id), dropped once nobody holds or waits."""

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    @asynccontextmanager
    async def hold(self, key: tuple[str, str]) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


class ProcessCalendarNotification:
    """Turns a payload-less calendar notification into call record changes.

    The notification only says that something changed; the authoritative
    event state is fetched from the calendar collaborator and each changed
    event is applied in isolation.
    """

    def __init__(
        self,
        call_repository: CallRepository,
        prospect_repository: ProspectRepository,
        calendar_client: CalendarClient,
        idempotency_store: IdempotencyStore,
        transitioner: CallTransitioner,
        audit_trail: AuditTrail,
        tenant_resolver: Callable[[str], TenantContext],
        alert_sink: Optional[AlertSink] = None,
        retry_policy: RetryPolicy = NO_RETRY,
        idempotency_ttl_seconds: int = 604800,
        lookback: timedelta = timedelta(minutes=5),
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize the notification coordinator.

        Args:
            call_repository: Call record store
            prospect_repository: Prospect ledger
            calendar_client: Calendar collaborator (source of truth)
            idempotency_store: Store of already-applied event revisions
            transitioner: Shared transition writer
            audit_trail: Audit trail writer
            tenant_resolver: Maps a tenant id to its processing policy
            alert_sink: Optional alert channel
            retry_policy: Retry policy for collaborator calls
            idempotency_ttl_seconds: TTL of processed-revision keys
            lookback: How far back to ask the calendar for changed events
            clock: Current-time provider (UTC)
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._calls = call_repository
        self._prospects = prospect_repository
        self._calendar = calendar_client
        self._idempotency = idempotency_store
        self._transitioner = transitioner
        self._audit = audit_trail
        self._tenant_resolver = tenant_resolver
        self._alert_sink = alert_sink
        self._retry_policy = retry_policy
        self._idempotency_ttl = idempotency_ttl_seconds
        self._lookback = lookback
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger
        self._event_locks = _KeyedLocks()

    def _log(self, tenant_id: Optional[str], **kwargs: Any) -> None:
        if self._logger:
            self._logger(tenant_id, "coordinator", **kwargs)

    async def _alert(self, alert: Alert) -> None:
        if self._alert_sink:
            await self._alert_sink.send(alert)

    async def execute(self, notification: CalendarNotification) -> ProcessingSummary:
        """
        Process one calendar notification.

        Args:
            notification: Resource-state change signal

        Returns:
            ProcessingSummary with processed, skipped and error counts
        """
        tenant_id = notification.tenant_id
        state = notification.resource_state

        if state == SYNC_STATE:
            self._log(tenant_id, action="sync_ack", channel_id=notification.channel_id)
            return ProcessingSummary()
        if state not in CHANGE_STATES:
            self._log(
                tenant_id,
                level=logging.WARNING,
                action="unknown_resource_state",
                resource_state=state,
            )
            return ProcessingSummary()

        tenant = self._tenant_resolver(tenant_id)
        updated_since = self._clock() - self._lookback

        try:
            events = await retry_async(
                lambda: self._calendar.list_changed_events(tenant, updated_since),
                self._retry_policy,
                "calendar_list_changed_events",
                logger=self._logger,
            )
        except Exception as e:
            self._log(tenant_id, level=logging.ERROR, action="calendar_fetch_failed", error=str(e))
            await self._alert(
                Alert(
                    severity="high",
                    title="Calendar fetch failed",
                    details=f"Could not list changed events (message {notification.message_number})",
                    tenant_id=tenant_id,
                    error=str(e),
                    suggested_action=(
                        "Check calendar credentials; changes are picked up on the next notification"
                    ),
                )
            )
            return ProcessingSummary(processed=0, skipped=0, errors=1)

        processed = skipped = errors = 0
        for event in sorted(events, key=lambda e: e.updated_at or _EPOCH):
            try:
                async with self._event_locks.hold((tenant_id, event.event_id)):
                    applied = await self._process_event(tenant, event)
            except Exception as e:
                errors += 1
                self._log(
                    tenant_id,
                    level=logging.ERROR,
                    action="event_failed",
                    event_id=event.event_id,
                    revision=event.revision,
                    error=str(e),
                )
                await self._alert(
                    Alert(
                        severity="medium",
                        title="Calendar event processing failed",
                        details=f"Event {event.event_id} revision {event.revision}",
                        tenant_id=tenant_id,
                        error=str(e),
                        suggested_action="The revision is retried on the next notification",
                    )
                )
                continue
            if applied:
                processed += 1
            else:
                skipped += 1

        summary = ProcessingSummary(processed=processed, skipped=skipped, errors=errors)
        self._log(
            tenant_id,
            action="notification_processed",
            resource_state=state,
            events=len(events),
            processed=processed,
            skipped=skipped,
            errors=errors,
        )
        return summary

    async def _process_event(self, tenant: TenantContext, event: CalendarEvent) -> bool:
        """Apply one event revision. Returns False when it was skipped or changed nothing."""
        tenant_id = tenant.tenant_id
        key = calendar_signal_key(tenant_id, event.event_id, event.revision)
        if await self._idempotency.is_processed(key):
            self._log(tenant_id, action="duplicate_revision", event_id=event.event_id)
            return False

        if not event.is_cancelled and not tenant.is_sales_call(event.summary):
            self._log(tenant_id, action="not_a_sales_call", event_id=event.event_id)
            return False

        call = await self._calls.find_latest_by_event(tenant_id, event.event_id)
        if call is None and event.call_id:
            call = await self._calls.get(tenant_id, event.call_id)
            if call is None:
                self._log(
                    tenant_id,
                    level=logging.WARNING,
                    action="dangling_call_reference",
                    event_id=event.event_id,
                    call_id=event.call_id,
                )

        if call is None:
            if event.is_cancelled or event.start is None or event.end is None:
                self._log(tenant_id, action="nothing_to_track", event_id=event.event_id)
                await self._mark(key)
                return False
            await self._create_call(tenant, event)
            await self._mark(key)
            return True

        if self._is_stale(call, event):
            self._log(
                tenant_id,
                action="stale_revision",
                event_id=event.event_id,
                call_id=call.call_id,
                revision=event.revision,
            )
            return False

        action = await self._apply_event(tenant, call, event)
        await self._mark(key)
        return action != CalendarAction.NONE

    async def reconcile(self, tenant: TenantContext, call: Call, event: CalendarEvent) -> CalendarAction:
        """
        Apply an authoritative event revision to a known call.

        Used by readers outside the notification path (the timeout sweeper)
        so that a cancellation or move it discovers is applied exactly as a
        notification would have applied it.

        Args:
            tenant: Tenant context
            call: Stored call
            event: Authoritative event revision

        Returns:
            The calendar action that was applied
        """
        async with self._event_locks.hold((tenant.tenant_id, event.event_id)):
            return await self._apply_event(tenant, call, event)

    async def _apply_event(self, tenant: TenantContext, call: Call, event: CalendarEvent) -> CalendarAction:
        tenant_id = tenant.tenant_id
        action = classify_calendar_event(call, event)
        self._log(
            tenant_id,
            action="calendar_action",
            event_id=event.event_id,
            call_id=call.call_id,
            calendar_action=action.value,
        )

        if action == CalendarAction.CANCEL:
            await self._transitioner.transition(
                call,
                Trigger.CALENDAR_CANCELED,
                SOURCE,
                detail=cancellation_reason(event),
                extra_fields=self._revision_fields(event),
            )
        elif action == CalendarAction.RESCHEDULE:
            await self._reschedule(tenant, call, event)
        elif action == CalendarAction.UPDATE:
            await self._update_details(tenant, call, event)
        elif action == CalendarAction.RECREATE:
            await self._create_call(tenant, event)
        else:
            await self._calls.update_fields(tenant_id, call.call_id, self._revision_fields(event))
        return action

    @staticmethod
    def _is_stale(call: Call, event: CalendarEvent) -> bool:
        if call.event_revision is not None and call.event_revision == event.revision:
            return True
        if call.event_updated_at is None or event.updated_at is None:
            return False
        return event.updated_at < call.event_updated_at

    @staticmethod
    def _revision_fields(event: CalendarEvent) -> dict[str, Any]:
        return {"event_revision": event.revision, "event_updated_at": event.updated_at}

    async def _mark(self, key: str) -> None:
        await self._idempotency.mark_processed(key, self._idempotency_ttl)

    async def _create_call(
        self,
        tenant: TenantContext,
        event: CalendarEvent,
        call_type: Optional[CallType] = None,
        prospect_email: Optional[str] = None,
        prospect_name: Optional[str] = None,
        rescheduled_from_call_id: Optional[str] = None,
        call_id: Optional[str] = None,
    ) -> Call:
        """
        Insert a call record for an event revision.

        Reschedule successors pass their call type and predecessor and are not
        counted again on the prospect ledger.
        """
        tenant_id = tenant.tenant_id
        if prospect_email is None:
            attendee = event.prospect_attendee()
            if attendee is not None and attendee.email:
                prospect_email = attendee.email.lower()
                prospect_name = attendee.display_name or name_from_email(attendee.email)
            else:
                prospect_email = UNKNOWN_PROSPECT_EMAIL

        prospect, prospect_created = await self._prospects.find_or_create(
            tenant_id,
            prospect_email,
            prospect_name=prospect_name,
            assigned_closer_email=event.organizer_email,
        )
        if prospect_created:
            await self._audit.record(
                tenant_id,
                "prospect",
                prospect_email,
                "created",
                SOURCE,
                trigger_detail=f"first seen on event {event.event_id}",
            )

        if call_type is None:
            call_type = classify_call_type(prospect.has_prior_show, is_reschedule=False)

        call = Call(
            call_id=call_id or str(uuid.uuid4()),
            tenant_id=tenant_id,
            prospect_email=prospect_email,
            prospect_name=prospect_name or prospect.prospect_name,
            scheduled_start=event.start,
            scheduled_end=event.end,
            call_type=call_type,
            calendar_event_id=event.event_id,
            event_revision=event.revision,
            event_updated_at=event.updated_at,
            rescheduled_from_call_id=rescheduled_from_call_id,
            closer_email=event.organizer_email,
        )
        await self._calls.add(call)

        if rescheduled_from_call_id is None:
            await self._prospects.record_call_scheduled(
                tenant_id, prospect_email, call.scheduled_start.date()
            )

        await self._audit.record(
            tenant_id,
            "call",
            call.call_id,
            "created",
            SOURCE,
            new_value=call.call_type,
            field_changed="call_type",
            metadata={
                "event_id": event.event_id,
                "revision": event.revision,
                "prospect_email": prospect_email,
                "rescheduled_from_call_id": rescheduled_from_call_id,
            },
        )
        self._log(
            tenant_id,
            action="call_created",
            call_id=call.call_id,
            event_id=event.event_id,
            call_type=call.call_type.value,
            rescheduled_from_call_id=rescheduled_from_call_id,
        )
        return call

    async def _reschedule(self, tenant: TenantContext, call: Call, event: CalendarEvent) -> Optional[Call]:
        successor_id = str(uuid.uuid4())
        fields = self._revision_fields(event)
        fields["rescheduled_to_call_id"] = successor_id
        moved = await self._transitioner.transition(
            call,
            Trigger.CALENDAR_MOVED,
            SOURCE,
            detail=f"moved to {event.start.isoformat() if event.start else None}",
            extra_fields=fields,
        )
        if moved is None:
            return None

        return await self._create_call(
            tenant,
            event,
            call_type=successor_call_type(call.call_type),
            prospect_email=call.prospect_email,
            prospect_name=call.prospect_name,
            rescheduled_from_call_id=call.call_id,
            call_id=successor_id,
        )

    async def _update_details(self, tenant: TenantContext, call: Call, event: CalendarEvent) -> None:
        changes: dict[str, tuple[Any, Any]] = {}
        if event.end is not None and event.end != call.scheduled_end:
            changes["scheduled_end"] = (call.scheduled_end, event.end)

        attendee = event.prospect_attendee()
        if attendee is not None and attendee.email.lower() != call.prospect_email.lower():
            new_email = attendee.email.lower()
            new_name = attendee.display_name or name_from_email(attendee.email)
            _, created = await self._prospects.find_or_create(
                tenant.tenant_id,
                new_email,
                prospect_name=new_name,
                assigned_closer_email=event.organizer_email,
            )
            if created:
                await self._audit.record(
                    tenant.tenant_id,
                    "prospect",
                    new_email,
                    "created",
                    SOURCE,
                    trigger_detail=f"attendee changed on event {event.event_id}",
                )
            # Count the call on the prospect it now belongs to.
            await self._prospects.record_call_scheduled(
                tenant.tenant_id, new_email, call.scheduled_start.date()
            )
            changes["prospect_email"] = (call.prospect_email, new_email)
            changes["prospect_name"] = (call.prospect_name, new_name)

        fields = {name: new for name, (_, new) in changes.items()}
        fields.update(self._revision_fields(event))
        await self._calls.update_fields(tenant.tenant_id, call.call_id, fields)
        await self._audit.record_field_changes(
            tenant.tenant_id,
            "call",
            call.call_id,
            changes,
            SOURCE,
            trigger_detail=f"revision {event.revision}",
        )
