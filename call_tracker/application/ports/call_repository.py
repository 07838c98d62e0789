"""Call repository port."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from call_tracker.domain.entities.call import Call
from call_tracker.domain.value_objects.attendance_state import AttendanceState


class CallRepository(ABC):
    """Port interface for the call record store."""

    @abstractmethod
    async def get(self, tenant_id: str, call_id: str) -> Optional[Call]:
        """
        Get a call by id.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier

        Returns:
            Call entity, or None if not found
        """
        pass

    @abstractmethod
    async def find_latest_by_event(self, tenant_id: str, calendar_event_id: str) -> Optional[Call]:
        """
        Get the most recently created call referencing a calendar event.

        A rescheduled call and its successor share the event id; the successor
        is the latest.

        Args:
            tenant_id: Tenant scope
            calendar_event_id: Provider event id

        Returns:
            Latest call for the event, or None
        """
        pass

    @abstractmethod
    async def add(self, call: Call) -> None:
        """
        Insert a new call record.

        Args:
            call: Call entity to insert
        """
        pass

    @abstractmethod
    async def update_fields(self, tenant_id: str, call_id: str, fields: dict[str, Any]) -> None:
        """
        Update non-state fields of a call.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier
            fields: Attribute name to new value (must not include attendance_state)
        """
        pass

    @abstractmethod
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
            expected: State the writer observed before deciding (None = unset)
            new: Target state
            extra_fields: Other fields written in the same update

        Returns:
            True if this writer won, False if the stored state had moved on
        """
        pass

    @abstractmethod
    async def find_pending_past_end(self, now: datetime) -> list[Call]:
        """
        Find unset or legacy-scheduled calls whose scheduled end has passed.

        Args:
            now: Current time

        Returns:
            Calls across all tenants
        """
        pass

    @abstractmethod
    async def find_waiting(self, ended_before: datetime) -> list[Call]:
        """
        Find calls waiting for an outcome that ended before ``ended_before``.

        Args:
            ended_before: Upper bound on scheduled end (tenant grace is applied by the caller)

        Returns:
            Calls across all tenants
        """
        pass

    @abstractmethod
    async def find_overlapping_pre_outcome(self, call: Call) -> list[Call]:
        """
        Find other pre-outcome calls of the same closer overlapping ``call``.

        Args:
            call: Reference call

        Returns:
            Overlapping calls, excluding ``call`` itself
        """
        pass

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> list[Call]:
        """
        List all calls of a tenant.

        Args:
            tenant_id: Tenant scope

        Returns:
            Calls ordered by scheduled start
        """
        pass
