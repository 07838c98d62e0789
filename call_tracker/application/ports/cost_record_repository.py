"""Cost record port."""

from abc import ABC, abstractmethod

from call_tracker.domain.entities.cost_record import CostRecord


class CostRecordRepository(ABC):
    """Port interface for AI-processing cost records (append-only)."""

    @abstractmethod
    async def append(self, record: CostRecord) -> None:
        """
        Append a cost record.

        Args:
            record: Record to append
        """
        pass

    @abstractmethod
    async def total_for_tenant(self, tenant_id: str) -> float:
        """
        Sum the cost of every record of a tenant.

        Args:
            tenant_id: Tenant scope

        Returns:
            Total cost in USD
        """
        pass
