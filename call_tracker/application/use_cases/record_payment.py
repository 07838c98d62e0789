"""Record payment use case."""

import logging
from datetime import date
from typing import Callable, Optional

from call_tracker.application.dtos.payment import PaymentEvent
from call_tracker.application.ports.prospect_repository import ProspectRepository
from call_tracker.application.use_cases.audit_trail import AuditTrail
from call_tracker.domain.entities.prospect import Prospect

SOURCE = "payment_webhook"
CLOSED_WON = "closed_won"
LOST = "lost"


class RecordPayment:
    """Applies payments and reversals to the prospect ledger."""

    def __init__(
        self,
        prospect_repository: ProspectRepository,
        audit_trail: AuditTrail,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize record payment use case.

        Args:
            prospect_repository: Prospect ledger
            audit_trail: Audit trail writer
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._prospects = prospect_repository
        self._audit = audit_trail
        self._logger = logger

    async def execute(self, tenant_id: str, payment: PaymentEvent) -> Optional[Prospect]:
        """
        Record a payment for a prospect.

        Payments add to cash collected and close the deal as won. Refunds and
        chargebacks subtract (never below zero) and flip the deal to lost once
        no cash remains.

        Args:
            tenant_id: Tenant scope
            payment: Payment event

        Returns:
            Updated prospect, or None if the prospect is unknown

        Raises:
            ValueError: If the amount is not positive
        """
        if payment.amount <= 0:
            raise ValueError("Payment amount must be positive")

        email = payment.prospect_email.lower()
        before = await self._prospects.get(tenant_id, email)
        if before is None:
            if self._logger:
                self._logger(
                    tenant_id,
                    "payment",
                    level=logging.WARNING,
                    action="unknown_prospect",
                    prospect_email=email,
                )
            return None

        if payment.is_reversal:
            updated = await self._prospects.record_payment(
                tenant_id,
                email,
                cash_delta=-payment.amount,
                payment_date=None,
                deal_status=None,
                count_payment=False,
                status_when_cleared=LOST,
            )
        else:
            updated = await self._prospects.record_payment(
                tenant_id,
                email,
                cash_delta=payment.amount,
                payment_date=payment.payment_date or date.today(),
                deal_status=CLOSED_WON,
                count_payment=True,
            )

        if updated is None:
            return None

        await self._audit.record(
            tenant_id,
            "prospect",
            email,
            "updated",
            SOURCE,
            field_changed="total_cash_collected",
            old_value=before.total_cash_collected,
            new_value=updated.total_cash_collected,
            trigger_detail=payment.payment_type,
            metadata={"amount": payment.amount, "deal_status": updated.deal_status},
        )
        if self._logger:
            self._logger(
                tenant_id,
                "payment",
                prospect_email=email,
                payment_type=payment.payment_type,
                amount=payment.amount,
                total_cash_collected=updated.total_cash_collected,
                deal_status=updated.deal_status,
            )
        return updated
