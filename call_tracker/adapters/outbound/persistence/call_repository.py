"""In-memory call repository adapter."""

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.domain.entities.call import Call
from call_tracker.domain.value_objects.attendance_state import AttendanceState, is_pre_outcome


class InMemoryCallRepository(CallRepository):
    """In-memory implementation of call repository.

    Entities are copied in and out so callers never share mutable state with
    the store. Methods contain no await points, which makes each of them atomic
    on the event loop.
    """

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: dict[tuple[str, str], Call] = {}
        self._sequence: dict[tuple[str, str], int] = {}

    async def get(self, tenant_id: str, call_id: str) -> Optional[Call]:
        """
        Get a call by id.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier

        Returns:
            Call entity, or None if not found
        """
        call = self._storage.get((tenant_id, call_id))
        return replace(call) if call else None

    async def find_latest_by_event(self, tenant_id: str, calendar_event_id: str) -> Optional[Call]:
        """
        Get the most recently inserted call referencing a calendar event.

        Args:
            tenant_id: Tenant scope
            calendar_event_id: Provider event id

        Returns:
            Latest call for the event, or None
        """
        matches = [
            key
            for key, call in self._storage.items()
            if call.tenant_id == tenant_id and call.calendar_event_id == calendar_event_id
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda key: self._sequence[key])
        return replace(self._storage[latest])

    async def add(self, call: Call) -> None:
        """
        Insert a new call record.

        Args:
            call: Call entity to insert

        Raises:
            ValueError: If the call id already exists
        """
        key = (call.tenant_id, call.call_id)
        if key in self._storage:
            raise ValueError(f"Call already exists: {call.call_id}")
        self._storage[key] = replace(call)
        self._sequence[key] = len(self._sequence)

    async def update_fields(self, tenant_id: str, call_id: str, fields: dict[str, Any]) -> None:
        """
        Update non-state fields of a call.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier
            fields: Attribute name to new value
        """
        if "attendance_state" in fields:
            raise ValueError("attendance_state changes must go through compare_and_set_state")
        key = (tenant_id, call_id)
        call = self._storage.get(key)
        if call is None:
            return
        updated = replace(call, **fields)
        updated.touch()
        self._storage[key] = updated

    async def compare_and_set_state(
        self,
        tenant_id: str,
        call_id: str,
        expected: Optional[AttendanceState],
        new: AttendanceState,
        extra_fields: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Atomically move a call to ``new`` if it is still in ``expected``.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier
            expected: Observed state
            new: Target state
            extra_fields: Other fields written in the same update

        Returns:
            True if the write happened
        """
        key = (tenant_id, call_id)
        call = self._storage.get(key)
        if call is None or call.attendance_state != expected:
            return False
        updated = replace(call, attendance_state=new, **(extra_fields or {}))
        updated.touch()
        self._storage[key] = updated
        return True

    async def find_pending_past_end(self, now: datetime) -> list[Call]:
        """
        Find unset or legacy-scheduled calls whose scheduled end has passed.

        Args:
            now: Current time

        Returns:
            Calls across all tenants
        """
        return [
            replace(call)
            for call in self._storage.values()
            if call.attendance_state in (None, AttendanceState.SCHEDULED) and call.scheduled_end <= now
        ]

    async def find_waiting(self, ended_before: datetime) -> list[Call]:
        """
        Find waiting calls that ended before ``ended_before``.

        Args:
            ended_before: Upper bound on scheduled end

        Returns:
            Calls across all tenants
        """
        return [
            replace(call)
            for call in self._storage.values()
            if call.attendance_state == AttendanceState.WAITING_FOR_OUTCOME
            and call.scheduled_end <= ended_before
        ]

    async def find_overlapping_pre_outcome(self, call: Call) -> list[Call]:
        """
        Find other pre-outcome calls of the same closer overlapping ``call``.

        Args:
            call: Reference call

        Returns:
            Overlapping calls
        """
        return [
            replace(other)
            for other in self._storage.values()
            if other.tenant_id == call.tenant_id
            and other.call_id != call.call_id
            and other.closer_email is not None
            and other.closer_email == call.closer_email
            and is_pre_outcome(other.attendance_state)
            and other.overlaps(call)
        ]

    async def list_for_tenant(self, tenant_id: str) -> list[Call]:
        """
        List all calls of a tenant.

        Args:
            tenant_id: Tenant scope

        Returns:
            Calls ordered by scheduled start
        """
        calls = [replace(call) for call in self._storage.values() if call.tenant_id == tenant_id]
        return sorted(calls, key=lambda call: call.scheduled_start)
