"""In-memory cost record adapter."""

from call_tracker.application.ports.cost_record_repository import CostRecordRepository
from call_tracker.domain.entities.cost_record import CostRecord


class InMemoryCostRecordRepository(CostRecordRepository):
    """In-memory implementation of cost record store."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._records: list[CostRecord] = []

    async def append(self, record: CostRecord) -> None:
        """
        Append a cost record.

        Args:
            record: Record to append
        """
        self._records.append(record)

    async def total_for_tenant(self, tenant_id: str) -> float:
        """
        Sum the cost of every record of a tenant.

        Args:
            tenant_id: Tenant scope

        Returns:
            Total cost in USD
        """
        return sum(r.total_cost_usd for r in self._records if r.tenant_id == tenant_id)
