"""Shared attendance transition writer."""

import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.application.ports.prospect_repository import ProspectRepository
from call_tracker.application.use_cases.audit_trail import AuditTrail
from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_state_machine import (
    Trigger,
    can_transition,
    resolve_transition,
)
from call_tracker.domain.value_objects.attendance_state import AttendanceState

OVERLAP_SOURCE = "overlap_detection"


class CallTransitioner:
    """Applies state-machine transitions to stored calls.

    Every writer (coordinator, transcript handler, sweeper, admin) goes through
    here, so the compare-and-set, the audit entries and the prospect ledger
    projections are applied the same way regardless of who observed the change.
    """

    def __init__(
        self,
        call_repository: CallRepository,
        prospect_repository: ProspectRepository,
        audit_trail: AuditTrail,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize call transitioner.

        Args:
            call_repository: Call record store
            prospect_repository: Prospect ledger
            audit_trail: Audit trail writer
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._calls = call_repository
        self._prospects = prospect_repository
        self._audit = audit_trail
        self._logger = logger

    def _log(self, tenant_id: Optional[str], component: str, **kwargs: Any) -> None:
        if self._logger:
            self._logger(tenant_id, component, **kwargs)

    async def transition(
        self,
        call: Call,
        trigger: Trigger,
        source: str,
        detail: Optional[str] = None,
        extra_fields: Optional[dict[str, Any]] = None,
    ) -> Optional[Call]:
        """
        Move ``call`` out of the state it was read in.

        The write only lands if the stored state still equals
        ``call.attendance_state``; a concurrent writer that got there first wins
        and this call becomes a no-op.

        Args:
            call: Call as read by the caller
            trigger: What happened
            source: Trigger source recorded in the audit log
            detail: Free-form detail recorded in the audit log
            extra_fields: Other call fields written in the same update

        Returns:
            The updated call, or None if the transition was invalid or lost
        """
        current = call.attendance_state
        if not can_transition(current, trigger):
            self._log(
                call.tenant_id,
                "state_machine",
                level=logging.WARNING,
                call_id=call.call_id,
                action="transition_rejected",
                attendance_state=current.value if current else None,
                trigger=trigger.value,
            )
            return None

        target = resolve_transition(current, trigger)
        extra_fields = dict(extra_fields or {})
        won = await self._calls.compare_and_set_state(
            call.tenant_id, call.call_id, current, target, extra_fields
        )
        if not won:
            self._log(
                call.tenant_id,
                "state_machine",
                call_id=call.call_id,
                action="transition_lost_race",
                expected=current.value if current else None,
                attempted=target.value,
                trigger=trigger.value,
            )
            return None

        updated = replace(call, attendance_state=target, **extra_fields)
        updated.touch()

        self._log(
            call.tenant_id,
            "state_machine",
            call_id=call.call_id,
            attendance_before=current.value if current else None,
            attendance_after=target.value,
            trigger=trigger.value,
            source=source,
        )

        await self._audit.record(
            call.tenant_id,
            "call",
            call.call_id,
            "state_change",
            source,
            field_changed="attendance_state",
            old_value=current,
            new_value=target,
            trigger_detail=trigger.value,
            metadata={"detail": detail} if detail else None,
        )
        await self._audit.record_field_changes(
            call.tenant_id,
            "call",
            call.call_id,
            {name: (getattr(call, name), value) for name, value in extra_fields.items()},
            source,
            trigger_detail=trigger.value,
        )

        if target == AttendanceState.SHOW:
            await self._project_show(updated, source)

        return updated

    async def _project_show(self, call: Call, source: str) -> None:
        counted = await self._prospects.record_show(call.tenant_id, call.prospect_email)
        if counted:
            await self._audit.record(
                call.tenant_id,
                "prospect",
                call.prospect_email,
                "updated",
                source,
                field_changed="total_shows",
                trigger_detail=f"show on call {call.call_id}",
            )
        else:
            self._log(
                call.tenant_id,
                "ledger",
                level=logging.WARNING,
                call_id=call.call_id,
                action="show_not_counted",
                prospect_email=call.prospect_email,
            )

        await self.mark_overbooked_overlaps(call)

    async def mark_overbooked_overlaps(self, call: Call) -> int:
        """
        Mark pre-outcome calls of the same closer that overlap a held call.

        A closer who showed up on ``call`` could not attend anything scheduled
        over the same slot.

        Args:
            call: Call that was held

        Returns:
            Number of calls marked overbooked
        """
        if not call.closer_email:
            return 0

        marked = 0
        for other in await self._calls.find_overlapping_pre_outcome(call):
            result = await self.transition(
                other,
                Trigger.CLOSER_DOUBLE_BOOKED,
                OVERLAP_SOURCE,
                detail=f"overlaps held call {call.call_id}",
            )
            if result is not None:
                marked += 1
        return marked
