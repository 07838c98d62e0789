"""Persistence adapters."""

from call_tracker.adapters.outbound.persistence.audit_log_repository import InMemoryAuditLogRepository
from call_tracker.adapters.outbound.persistence.call_repository import InMemoryCallRepository
from call_tracker.adapters.outbound.persistence.cost_record_repository import InMemoryCostRecordRepository
from call_tracker.adapters.outbound.persistence.postgres_audit_log_repository import (
    PostgresAuditLogRepository,
)
from call_tracker.adapters.outbound.persistence.postgres_call_repository import PostgresCallRepository
from call_tracker.adapters.outbound.persistence.postgres_cost_record_repository import (
    PostgresCostRecordRepository,
)
from call_tracker.adapters.outbound.persistence.postgres_prospect_repository import (
    PostgresProspectRepository,
)
from call_tracker.adapters.outbound.persistence.prospect_repository import InMemoryProspectRepository

__all__ = [
    "InMemoryAuditLogRepository",
    "InMemoryCallRepository",
    "InMemoryCostRecordRepository",
    "InMemoryProspectRepository",
    "PostgresAuditLogRepository",
    "PostgresCallRepository",
    "PostgresCostRecordRepository",
    "PostgresProspectRepository",
]
