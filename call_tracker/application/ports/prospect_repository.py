"""Prospect ledger port."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from call_tracker.domain.entities.prospect import Prospect


class ProspectRepository(ABC):
    """Port interface for the prospect ledger.

    Counter methods must be atomic increments so concurrent call completions
    for the same prospect never lose an update.
    """

    @abstractmethod
    async def get(self, tenant_id: str, prospect_email: str) -> Optional[Prospect]:
        """
        Get a prospect by its (tenant, e-mail) key.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail

        Returns:
            Prospect entity, or None if not found
        """
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    async def record_call_scheduled(self, tenant_id: str, prospect_email: str, call_date: date) -> None:
        """
        Atomically count a newly scheduled call.

        Increments total_calls and widens first/last call dates.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            call_date: Scheduled date of the call
        """
        pass

    @abstractmethod
    async def record_show(self, tenant_id: str, prospect_email: str) -> bool:
        """
        Atomically count a show.

        The increment is refused if it would make total_shows exceed total_calls.

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail

        Returns:
            True if the counter was incremented
        """
        pass

    @abstractmethod
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
            cash_delta: Amount to add (negative for reversals); cash never drops below 0
            payment_date: Date to store as last payment date, if any
            deal_status: New deal status, if it changes
            count_payment: Whether to increment payment_count
            status_when_cleared: Deal status to set if no cash remains after the update

        Returns:
            Updated prospect, or None if the prospect does not exist
        """
        pass

    @abstractmethod
    async def set_status(self, tenant_id: str, prospect_email: str, status: str) -> None:
        """
        Set the soft lifecycle status (prospects are never deleted).

        Args:
            tenant_id: Tenant scope
            prospect_email: Prospect e-mail
            status: active or inactive
        """
        pass
