"""Postgres-backed cost record adapter."""

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from call_tracker.application.ports.cost_record_repository import CostRecordRepository
from call_tracker.domain.entities.cost_record import CostRecord
from call_tracker.infrastructure.db import get_db_session
from call_tracker.infrastructure.logging.logger import logger

from .models import CostRecordModel


class PostgresCostRecordRepository(CostRecordRepository):
    """Postgres implementation of cost record store."""

    async def append(self, record: CostRecord) -> None:
        """
        Append a cost record.

        Args:
            record: Record to append
        """
        db: Session = get_db_session()
        try:
            db.add(
                CostRecordModel(
                    cost_id=record.cost_id,
                    timestamp=record.timestamp,
                    tenant_id=record.tenant_id,
                    call_id=record.call_id,
                    model=record.model,
                    input_tokens=record.input_tokens,
                    output_tokens=record.output_tokens,
                    input_cost_usd=record.input_cost_usd,
                    output_cost_usd=record.output_cost_usd,
                    total_cost_usd=record.total_cost_usd,
                    processing_time_ms=record.processing_time_ms,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while recording cost for call {record.call_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def total_for_tenant(self, tenant_id: str) -> float:
        """
        Sum the cost of every record of a tenant.

        Args:
            tenant_id: Tenant scope

        Returns:
            Total cost in USD
        """
        db: Session = get_db_session()
        try:
            total = (
                db.query(func.coalesce(func.sum(CostRecordModel.total_cost_usd), 0.0))
                .filter(CostRecordModel.tenant_id == tenant_id)
                .scalar()
            )
            return float(total or 0.0)
        except SQLAlchemyError as e:
            logger.error(f"Database error while summing costs for tenant {tenant_id}: {str(e)}")
            raise
        finally:
            db.close()
