"""Payment DTOs."""

from datetime import date
from typing import Literal, Optional

from call_tracker.application.dtos.base import DTO

PaymentType = Literal["full", "deposit", "payment_plan", "refund", "chargeback"]


class PaymentEvent(DTO):
    """A payment (or reversal) reported for a prospect."""

    prospect_email: str
    amount: float
    payment_type: PaymentType = "full"
    payment_date: Optional[date] = None

    @property
    def is_reversal(self) -> bool:
        return self.payment_type in ("refund", "chargeback")
