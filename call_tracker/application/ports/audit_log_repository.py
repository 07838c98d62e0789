"""Audit log port."""

from abc import ABC, abstractmethod

from call_tracker.domain.entities.audit_entry import AuditEntry


class AuditLogRepository(ABC):
    """Port interface for the append-only audit log.

    There is deliberately no update or delete operation.
    """

    @abstractmethod
    async def append(self, entry: AuditEntry) -> None:
        """
        Append an audit entry.

        Args:
            entry: Entry to append
        """
        pass

    @abstractmethod
    async def list_for_entity(self, tenant_id: str, entity_type: str, entity_id: str) -> list[AuditEntry]:
        """
        Get the audit trail of one entity.

        Args:
            tenant_id: Tenant scope
            entity_type: Entity type (call, prospect)
            entity_id: Entity identifier

        Returns:
            Entries in chronological order
        """
        pass
