"""Postgres-backed call repository adapter."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.domain.entities.call import Call
from call_tracker.domain.value_objects.attendance_state import AttendanceState, parse_attendance_state
from call_tracker.domain.value_objects.call_type import CallType
from call_tracker.infrastructure.db import get_db_session
from call_tracker.infrastructure.logging.logger import logger

from .models import CallModel, as_utc, to_column_value

_PENDING = (AttendanceState.SCHEDULED.value, AttendanceState.WAITING_FOR_OUTCOME.value)


class PostgresCallRepository(CallRepository):
    """Postgres implementation of call repository.

    State changes are a single conditional UPDATE so that concurrent writers
    cannot both win.
    """

    def _model_to_entity(self, model: CallModel) -> Call:
        """
        Convert CallModel to Call entity.

        Args:
            model: SQLAlchemy model instance

        Returns:
            Call entity

        Raises:
            UnknownAttendanceStateError: If the stored state is not a known value
        """
        return Call(
            call_id=model.call_id,
            tenant_id=model.tenant_id,
            prospect_email=model.prospect_email,
            prospect_name=model.prospect_name,
            closer_email=model.closer_email,
            scheduled_start=as_utc(model.scheduled_start),
            scheduled_end=as_utc(model.scheduled_end),
            call_type=CallType(model.call_type),
            attendance_state=parse_attendance_state(model.attendance_state),
            calendar_event_id=model.calendar_event_id,
            event_revision=model.event_revision,
            event_updated_at=as_utc(model.event_updated_at),
            rescheduled_from_call_id=model.rescheduled_from_call_id,
            rescheduled_to_call_id=model.rescheduled_to_call_id,
            transcript_ref=model.transcript_ref,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    def _entity_to_model(self, call: Call) -> CallModel:
        return CallModel(
            call_id=call.call_id,
            tenant_id=call.tenant_id,
            prospect_email=call.prospect_email,
            prospect_name=call.prospect_name,
            closer_email=call.closer_email,
            scheduled_start=call.scheduled_start,
            scheduled_end=call.scheduled_end,
            call_type=call.call_type.value,
            attendance_state=to_column_value(call.attendance_state),
            calendar_event_id=call.calendar_event_id,
            event_revision=call.event_revision,
            event_updated_at=call.event_updated_at,
            rescheduled_from_call_id=call.rescheduled_from_call_id,
            rescheduled_to_call_id=call.rescheduled_to_call_id,
            transcript_ref=call.transcript_ref,
            created_at=call.created_at,
            updated_at=call.updated_at,
        )

    def _query_all(self, description: str, *criteria: Any, order_by: Any = None) -> list[Call]:
        db: Session = get_db_session()
        try:
            query = db.query(CallModel).filter(*criteria)
            if order_by is not None:
                query = query.order_by(order_by)
            return [self._model_to_entity(model) for model in query.all()]
        except SQLAlchemyError as e:
            logger.error(f"Database error while {description}: {str(e)}")
            raise
        finally:
            db.close()

    async def get(self, tenant_id: str, call_id: str) -> Optional[Call]:
        """
        Get a call by id.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier

        Returns:
            Call entity, or None if not found
        """
        db: Session = get_db_session()
        try:
            model = (
                db.query(CallModel)
                .filter(CallModel.tenant_id == tenant_id, CallModel.call_id == call_id)
                .first()
            )
            if model is None:
                return None
            return self._model_to_entity(model)
        except SQLAlchemyError as e:
            logger.error(f"Database error while getting call {call_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def find_latest_by_event(self, tenant_id: str, calendar_event_id: str) -> Optional[Call]:
        """
        Get the most recently created call referencing a calendar event.

        Args:
            tenant_id: Tenant scope
            calendar_event_id: Provider event id

        Returns:
            Latest call for the event, or None
        """
        db: Session = get_db_session()
        try:
            model = (
                db.query(CallModel)
                .filter(
                    CallModel.tenant_id == tenant_id,
                    CallModel.calendar_event_id == calendar_event_id,
                )
                .order_by(CallModel.created_at.desc())
                .first()
            )
            if model is None:
                return None
            return self._model_to_entity(model)
        except SQLAlchemyError as e:
            logger.error(f"Database error while finding call for event {calendar_event_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def add(self, call: Call) -> None:
        """
        Insert a new call record.

        Args:
            call: Call entity to insert
        """
        db: Session = get_db_session()
        try:
            db.add(self._entity_to_model(call))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while inserting call {call.call_id}: {str(e)}")
            raise
        finally:
            db.close()

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
        values = {name: to_column_value(value) for name, value in fields.items()}
        values["updated_at"] = datetime.now(timezone.utc)

        db: Session = get_db_session()
        try:
            db.execute(
                update(CallModel)
                .where(CallModel.tenant_id == tenant_id, CallModel.call_id == call_id)
                .values(**values)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while updating call {call_id}: {str(e)}")
            raise
        finally:
            db.close()

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
            True if exactly one row was updated
        """
        if expected is None:
            state_matches = CallModel.attendance_state.is_(None)
        else:
            state_matches = CallModel.attendance_state == expected.value

        values = {name: to_column_value(value) for name, value in (extra_fields or {}).items()}
        values["attendance_state"] = new.value
        values["updated_at"] = datetime.now(timezone.utc)

        db: Session = get_db_session()
        try:
            result = db.execute(
                update(CallModel)
                .where(CallModel.tenant_id == tenant_id, CallModel.call_id == call_id, state_matches)
                .values(**values)
            )
            db.commit()
            return result.rowcount == 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while transitioning call {call_id} to {new.value}: {str(e)}")
            raise
        finally:
            db.close()

    async def find_pending_past_end(self, now: datetime) -> list[Call]:
        """
        Find unset or legacy-scheduled calls whose scheduled end has passed.

        Args:
            now: Current time

        Returns:
            Calls across all tenants
        """
        return self._query_all(
            "finding calls past their end",
            or_(
                CallModel.attendance_state.is_(None),
                CallModel.attendance_state == AttendanceState.SCHEDULED.value,
            ),
            CallModel.scheduled_end <= now,
        )

    async def find_waiting(self, ended_before: datetime) -> list[Call]:
        """
        Find waiting calls that ended before ``ended_before``.

        Args:
            ended_before: Upper bound on scheduled end

        Returns:
            Calls across all tenants
        """
        return self._query_all(
            "finding calls waiting for an outcome",
            CallModel.attendance_state == AttendanceState.WAITING_FOR_OUTCOME.value,
            CallModel.scheduled_end <= ended_before,
        )

    async def find_overlapping_pre_outcome(self, call: Call) -> list[Call]:
        """
        Find other pre-outcome calls of the same closer overlapping ``call``.

        Args:
            call: Reference call

        Returns:
            Overlapping calls
        """
        if not call.closer_email:
            return []
        return self._query_all(
            "finding overlapping calls",
            CallModel.tenant_id == call.tenant_id,
            CallModel.call_id != call.call_id,
            CallModel.closer_email == call.closer_email,
            or_(CallModel.attendance_state.is_(None), CallModel.attendance_state.in_(_PENDING)),
            CallModel.scheduled_start < call.scheduled_end,
            CallModel.scheduled_end > call.scheduled_start,
        )

    async def list_for_tenant(self, tenant_id: str) -> list[Call]:
        """
        List all calls of a tenant.

        Args:
            tenant_id: Tenant scope

        Returns:
            Calls ordered by scheduled start
        """
        return self._query_all(
            "listing calls",
            CallModel.tenant_id == tenant_id,
            order_by=CallModel.scheduled_start,
        )
