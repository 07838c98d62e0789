"""Postgres-backed prospect repository adapter."""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import case, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from call_tracker.application.ports.prospect_repository import ProspectRepository
from call_tracker.domain.entities.prospect import Prospect
from call_tracker.infrastructure.db import get_db_session
from call_tracker.infrastructure.logging.logger import logger

from .models import ProspectModel, as_utc


class PostgresProspectRepository(ProspectRepository):
    """Postgres implementation of the prospect ledger.

    Counters are incremented in SQL (``column + 1``) rather than read,
    modified and written back.
    """

    def _model_to_entity(self, model: ProspectModel) -> Prospect:
        """
        Convert ProspectModel to Prospect entity.

        Args:
            model: SQLAlchemy model instance

        Returns:
            Prospect entity
        """
        return Prospect(
            prospect_id=model.prospect_id,
            tenant_id=model.tenant_id,
            prospect_email=model.prospect_email,
            prospect_name=model.prospect_name,
            first_call_date=model.first_call_date,
            last_call_date=model.last_call_date,
            total_calls=model.total_calls or 0,
            total_shows=model.total_shows or 0,
            status=model.status,
            deal_status=model.deal_status,
            total_revenue_generated=model.total_revenue_generated or 0.0,
            total_cash_collected=model.total_cash_collected or 0.0,
            last_payment_date=model.last_payment_date,
            payment_count=model.payment_count or 0,
            assigned_closer_email=model.assigned_closer_email,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    @staticmethod
    def _match(tenant_id: str, prospect_email: str) -> tuple[Any, Any]:
        return (
            ProspectModel.tenant_id == tenant_id,
            ProspectModel.prospect_email == prospect_email.lower(),
        )

    def _fetch(self, db: Session, tenant_id: str, prospect_email: str) -> Optional[ProspectModel]:
        return db.query(ProspectModel).filter(*self._match(tenant_id, prospect_email)).first()

    def _update(self, description: str, tenant_id: str, prospect_email: str, *criteria: Any, **values: Any) -> int:
        values["updated_at"] = datetime.now(timezone.utc)
        db: Session = get_db_session()
        try:
            result = db.execute(
                update(ProspectModel)
                .where(*self._match(tenant_id, prospect_email), *criteria)
                .values(**values)
            )
            db.commit()
            return result.rowcount
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while {description} for prospect {prospect_email}: {str(e)}")
            raise
        finally:
            db.close()

    async def get(self, tenant_id: str, prospect_email: str) -> Optional[Prospect]:
        """
        Get a prospect by its (tenant, e-mail) key.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail

        Returns:
            Prospect entity, or None if not found
        """
        db: Session = get_db_session()
        try:
            model = self._fetch(db, tenant_id, prospect_email)
            return self._model_to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Database error while getting prospect {prospect_email}: {str(e)}")
            raise
        finally:
            db.close()

    async def find_or_create(
        self,
        tenant_id: str,
        prospect_email: str,
        prospect_name: Optional[str] = None,
        assigned_closer_email: Optional[str] = None,
    ) -> tuple[Prospect, bool]:
        """
        Get a prospect, creating it with zeroed counters if missing.

        A concurrent insert of the same (tenant, e-mail) loses on the unique
        constraint and falls back to reading the winner's row.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            prospect_name: Display name for a new prospect
            assigned_closer_email: Closer for a new prospect

        Returns:
            (prospect, created)
        """
        db: Session = get_db_session()
        try:
            model = self._fetch(db, tenant_id, prospect_email)
            if model is not None:
                return self._model_to_entity(model), False

            now = datetime.now(timezone.utc)
            model = ProspectModel(
                prospect_id=str(uuid.uuid4()),
                tenant_id=tenant_id,
                prospect_email=prospect_email.lower(),
                prospect_name=prospect_name,
                assigned_closer_email=assigned_closer_email,
                total_calls=0,
                total_shows=0,
                status="active",
                deal_status="open",
                total_revenue_generated=0.0,
                total_cash_collected=0.0,
                payment_count=0,
                created_at=now,
                updated_at=now,
            )
            db.add(model)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                model = self._fetch(db, tenant_id, prospect_email)
                if model is None:
                    raise
                return self._model_to_entity(model), False
            db.refresh(model)
            return self._model_to_entity(model), True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while creating prospect {prospect_email}: {str(e)}")
            raise
        finally:
            db.close()

    async def record_call_scheduled(self, tenant_id: str, prospect_email: str, call_date: date) -> None:
        """
        Atomically count a newly scheduled call.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            call_date: Scheduled date of the call
        """
        self._update(
            "counting a call",
            tenant_id,
            prospect_email,
            total_calls=ProspectModel.total_calls + 1,
            first_call_date=case(
                (
                    or_(
                        ProspectModel.first_call_date.is_(None),
                        ProspectModel.first_call_date > call_date,
                    ),
                    call_date,
                ),
                else_=ProspectModel.first_call_date,
            ),
            last_call_date=case(
                (
                    or_(
                        ProspectModel.last_call_date.is_(None),
                        ProspectModel.last_call_date < call_date,
                    ),
                    call_date,
                ),
                else_=ProspectModel.last_call_date,
            ),
        )

    async def record_show(self, tenant_id: str, prospect_email: str) -> bool:
        """
        Atomically count a show, refusing to exceed total_calls.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail

        Returns:
            True if the counter was incremented
        """
        updated = self._update(
            "counting a show",
            tenant_id,
            prospect_email,
            ProspectModel.total_shows < ProspectModel.total_calls,
            total_shows=ProspectModel.total_shows + 1,
        )
        return updated == 1

    async def record_payment(
        self,
        tenant_id: str,
        prospect_email: str,
        cash_delta: float,
        payment_date: Optional[date],
        deal_status: Optional[str],
        count_payment: bool,
        status_when_cleared: Optional[str] = None,
    ) -> Optional[Prospect]:
        """
        Apply a payment or reversal to the prospect's money columns.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            cash_delta: Amount to add (negative for reversals)
            payment_date: Date to store as last payment date, if any
            deal_status: New deal status, if it changes
            count_payment: Whether to increment payment_count
            status_when_cleared: Deal status to set if no cash remains after the update

        Returns:
            Updated prospect, or None if the prospect does not exist
        """
        new_cash = ProspectModel.total_cash_collected + cash_delta
        values: dict[str, Any] = {
            "total_cash_collected": case((new_cash < 0, 0.0), else_=new_cash),
        }
        if cash_delta > 0:
            values["total_revenue_generated"] = ProspectModel.total_revenue_generated + cash_delta
        if count_payment:
            values["payment_count"] = ProspectModel.payment_count + 1
        if payment_date is not None:
            values["last_payment_date"] = payment_date
        if deal_status is not None:
            values["deal_status"] = deal_status
        if status_when_cleared is not None:
            values["deal_status"] = case(
                (new_cash <= 0, status_when_cleared),
                else_=values.get("deal_status", ProspectModel.deal_status),
            )

        if self._update("recording a payment", tenant_id, prospect_email, **values) == 0:
            return None
        return await self.get(tenant_id, prospect_email)

    async def set_status(self, tenant_id: str, prospect_email: str, status: str) -> None:
        """
        Set the soft lifecycle status.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            status: active or inactive
        """
        self._update("setting status", tenant_id, prospect_email, status=status)
