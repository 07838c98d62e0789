"""In-memory audit log adapter."""

from call_tracker.application.ports.audit_log_repository import AuditLogRepository
from call_tracker.domain.entities.audit_entry import AuditEntry


class InMemoryAuditLogRepository(AuditLogRepository):
    """In-memory implementation of the append-only audit log."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._entries: list[AuditEntry] = []

    async def append(self, entry: AuditEntry) -> None:
        """
        Append an audit entry.

        Args:
            entry: Entry to append
        """
        self._entries.append(entry)

    async def list_for_entity(self, tenant_id: str, entity_type: str, entity_id: str) -> list[AuditEntry]:
        """
        Get the audit trail of one entity.

        Args:
            tenant_id: Tenant scope
            entity_type: Entity type
            entity_id: Entity identifier

        Returns:
            Entries in insertion order
        """
        return [
            entry
            for entry in self._entries
            if entry.tenant_id == tenant_id
            and entry.entity_type == entity_type
            and entry.entity_id == entity_id
        ]

    def all(self) -> list[AuditEntry]:
        """Return every entry (for inspection in tests and debugging)."""
        return self._entries.copy()
