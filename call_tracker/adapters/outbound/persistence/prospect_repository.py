"""In-memory prospect repository adapter."""

import uuid
from dataclasses import replace
from datetime import date
from typing import Optional

from call_tracker.application.ports.prospect_repository import ProspectRepository
from call_tracker.domain.entities.prospect import Prospect


class InMemoryProspectRepository(ProspectRepository):
    """In-memory implementation of the prospect ledger."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: dict[tuple[str, str], Prospect] = {}

    @staticmethod
    def _key(tenant_id: str, prospect_email: str) -> tuple[str, str]:
        return tenant_id, prospect_email.lower()

    async def get(self, tenant_id: str, prospect_email: str) -> Optional[Prospect]:
        """
        Get a prospect by its (tenant, e-mail) key.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail

        Returns:
            Prospect entity, or None if not found
        """
        prospect = self._storage.get(self._key(tenant_id, prospect_email))
        return replace(prospect) if prospect else None

    async def find_or_create(
        self,
        tenant_id: str,
        prospect_email: str,
        prospect_name: Optional[str] = None,
        assigned_closer_email: Optional[str] = None,
    ) -> tuple[Prospect, bool]:
        """
        Get a prospect, creating it with zeroed counters if missing.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            prospect_name: Display name for a new prospect
            assigned_closer_email: Closer for a new prospect

        Returns:
            (prospect, created)
        """
        key = self._key(tenant_id, prospect_email)
        existing = self._storage.get(key)
        if existing is not None:
            return replace(existing), False

        prospect = Prospect(
            prospect_id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            prospect_email=prospect_email.lower(),
            prospect_name=prospect_name,
            assigned_closer_email=assigned_closer_email,
        )
        self._storage[key] = prospect
        return replace(prospect), True

    async def record_call_scheduled(self, tenant_id: str, prospect_email: str, call_date: date) -> None:
        """
        Count a newly scheduled call.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            call_date: Scheduled date of the call
        """
        prospect = self._storage.get(self._key(tenant_id, prospect_email))
        if prospect is None:
            return
        prospect.total_calls += 1
        prospect.note_call_date(call_date)
        prospect.touch()

    async def record_show(self, tenant_id: str, prospect_email: str) -> bool:
        """
        Count a show unless it would exceed the number of calls.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail

        Returns:
            True if the counter was incremented
        """
        prospect = self._storage.get(self._key(tenant_id, prospect_email))
        if prospect is None or prospect.total_shows >= prospect.total_calls:
            return False
        prospect.total_shows += 1
        prospect.touch()
        return True

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
        prospect = self._storage.get(self._key(tenant_id, prospect_email))
        if prospect is None:
            return None
        prospect.total_cash_collected = max(prospect.total_cash_collected + cash_delta, 0.0)
        if cash_delta > 0:
            prospect.total_revenue_generated += cash_delta
        if count_payment:
            prospect.payment_count += 1
        if payment_date is not None:
            prospect.last_payment_date = payment_date
        if deal_status is not None:
            prospect.deal_status = deal_status
        if status_when_cleared is not None and prospect.total_cash_collected == 0:
            prospect.deal_status = status_when_cleared
        prospect.touch()
        return replace(prospect)

    async def set_status(self, tenant_id: str, prospect_email: str, status: str) -> None:
        """
        Set the soft lifecycle status.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            status: active or inactive
        """
        prospect = self._storage.get(self._key(tenant_id, prospect_email))
        if prospect is not None:
            prospect.status = status
            prospect.touch()
