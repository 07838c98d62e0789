"""HTTP adapter schemas for webhook and admin payloads."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from call_tracker.application.dtos.payment import PaymentType


class AckResponse(BaseModel):
    """Acknowledgement returned before background processing."""

    status: str = "ok"


class TranscriptWebhookRequest(BaseModel):
    """Transcript-ready signal."""

    call_id: str

    model_config = ConfigDict(json_schema_extra={"example": {"call_id": "3f9c0d7e-0c1b-4a55-9d7e-8c3f1b2a4e10"}})


class PaymentWebhookRequest(BaseModel):
    """Payment or reversal reported by the payment processor."""

    prospect_email: str
    amount: float
    payment_type: PaymentType = "full"
    payment_date: Optional[date] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "prospect_email": "jane.doe@example.com",
                "amount": 2500.0,
                "payment_type": "deposit",
                "payment_date": "2026-03-02",
            }
        }
    )


class PaymentResponse(BaseModel):
    """Prospect ledger after a payment."""

    prospect_email: str
    total_cash_collected: float
    payment_count: int
    deal_status: str


class ExplicitOutcomeRequest(BaseModel):
    """Outcome asserted by an operator or upstream system."""

    outcome: Literal["no_recording", "overbooked"]
    detail: Optional[str] = None


class CallResponse(BaseModel):
    """Call record summary."""

    call_id: str
    tenant_id: str
    prospect_email: str
    call_type: str
    attendance_state: Optional[str] = None
    scheduled_start: datetime
    scheduled_end: datetime
    rescheduled_from_call_id: Optional[str] = None
    rescheduled_to_call_id: Optional[str] = None


class AuditEntryResponse(BaseModel):
    """One audit trail entry."""

    timestamp: datetime
    action: str
    trigger_source: str
    field_changed: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    trigger_detail: Optional[str] = None


class ProspectStatusRequest(BaseModel):
    """Soft lifecycle status change for a prospect."""

    status: Literal["active", "inactive"]


class ProspectResponse(BaseModel):
    """Prospect ledger summary."""

    prospect_email: str
    prospect_name: Optional[str] = None
    status: str
    deal_status: str
    total_calls: int
    total_shows: int
    total_cash_collected: float


class CostSummaryResponse(BaseModel):
    """Accumulated AI processing cost of a tenant."""

    tenant_id: str
    total_cost_usd: float
