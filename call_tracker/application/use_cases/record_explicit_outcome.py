"""Record explicit outcome use case."""

import logging
from typing import Callable, Optional

from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.application.use_cases.call_transitioner import CallTransitioner
from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_state_machine import Trigger
from call_tracker.domain.value_objects.attendance_state import AttendanceState

SOURCE = "admin"

EXPLICIT_OUTCOMES: dict[AttendanceState, Trigger] = {
    AttendanceState.NO_RECORDING: Trigger.RECORDING_FAILURE,
    AttendanceState.OVERBOOKED: Trigger.CLOSER_DOUBLE_BOOKED,
}


class RecordExplicitOutcome:
    """Applies an outcome asserted by an operator or upstream system."""

    def __init__(
        self,
        call_repository: CallRepository,
        transitioner: CallTransitioner,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize record explicit outcome use case.

        Args:
            call_repository: Call record store
            transitioner: Shared transition writer
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._calls = call_repository
        self._transitioner = transitioner
        self._logger = logger

    async def execute(
        self,
        tenant_id: str,
        call_id: str,
        outcome: AttendanceState,
        detail: Optional[str] = None,
    ) -> Optional[Call]:
        """
        Record a no_recording or overbooked outcome.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier
            outcome: Asserted outcome
            detail: Optional operator note

        Returns:
            Updated call, or None if the call is unknown or already resolved

        Raises:
            ValueError: If ``outcome`` cannot be asserted explicitly
        """
        trigger = EXPLICIT_OUTCOMES.get(outcome)
        if trigger is None:
            raise ValueError(f"Outcome cannot be set explicitly: {outcome.value}")

        call = await self._calls.get(tenant_id, call_id)
        if call is None:
            if self._logger:
                self._logger(
                    tenant_id,
                    "admin",
                    level=logging.WARNING,
                    action="unknown_call",
                    call_id=call_id,
                )
            return None

        return await self._transitioner.transition(call, trigger, SOURCE, detail=detail)
