"""SQLAlchemy ORM models for calls, prospects, audit log and cost records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Make a stored datetime timezone-aware (SQLite returns naive datetimes)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_column_value(value: Any) -> Any:
    """Convert enum members to their stored string value."""
    if isinstance(value, Enum):
        return value.value
    return value


class ProspectModel(Base):
    """SQLAlchemy model for prospects table."""

    __tablename__ = "prospects"
    __table_args__ = (UniqueConstraint("tenant_id", "prospect_email", name="uq_prospects_tenant_email"),)

    prospect_id = Column(String, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    prospect_email = Column(String, nullable=False)
    prospect_name = Column(String, nullable=True)
    first_call_date = Column(Date, nullable=True)
    last_call_date = Column(Date, nullable=True)
    total_calls = Column(Integer, nullable=False, default=0)
    total_shows = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="active")
    deal_status = Column(String, nullable=False, default="open")
    total_revenue_generated = Column(Float, nullable=False, default=0.0)
    total_cash_collected = Column(Float, nullable=False, default=0.0)
    last_payment_date = Column(Date, nullable=True)
    payment_count = Column(Integer, nullable=False, default=0)
    assigned_closer_email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class CallModel(Base):
    """SQLAlchemy model for calls table."""

    __tablename__ = "calls"
    __table_args__ = (
        Index("ix_calls_tenant_event", "tenant_id", "calendar_event_id"),
        Index("ix_calls_state_end", "attendance_state", "scheduled_end"),
    )

    call_id = Column(String, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    prospect_email = Column(String, nullable=False)
    prospect_name = Column(String, nullable=True)
    closer_email = Column(String, nullable=True)
    scheduled_start = Column(DateTime(timezone=True), nullable=False)
    scheduled_end = Column(DateTime(timezone=True), nullable=False)
    call_type = Column(String, nullable=False)
    attendance_state = Column(String, nullable=True)  # NULL until the first transition
    calendar_event_id = Column(String, nullable=True)
    event_revision = Column(String, nullable=True)
    event_updated_at = Column(DateTime(timezone=True), nullable=True)
    rescheduled_from_call_id = Column(String, nullable=True)
    rescheduled_to_call_id = Column(String, nullable=True)
    transcript_ref = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class AuditLogModel(Base):
    """SQLAlchemy model for audit_log table (append-only)."""

    __tablename__ = "audit_log"
    __table_args__ = (Index("ix_audit_log_entity", "entity_type", "entity_id"),)

    audit_id = Column(String, primary_key=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_now)
    tenant_id = Column(String, nullable=True, index=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    action = Column(String, nullable=False)
    field_changed = Column(String, nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    trigger_source = Column(String, nullable=False)
    trigger_detail = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_json = Column("metadata", JSON, nullable=True)


class CostRecordModel(Base):
    """SQLAlchemy model for cost_records table."""

    __tablename__ = "cost_records"

    cost_id = Column(String, primary_key=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_now)
    tenant_id = Column(String, nullable=False, index=True)
    call_id = Column(String, nullable=False)
    model = Column(String, nullable=False)
    input_tokens = Column(Integer, nullable=False, default=0)
    output_tokens = Column(Integer, nullable=False, default=0)
    input_cost_usd = Column(Float, nullable=False, default=0.0)
    output_cost_usd = Column(Float, nullable=False, default=0.0)
    total_cost_usd = Column(Float, nullable=False, default=0.0)
    processing_time_ms = Column(Integer, nullable=True)
