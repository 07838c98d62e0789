"""Audit entry entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditEntry:
    """One observed change. Entries are appended and never revised."""

    audit_id: str
    timestamp: datetime
    tenant_id: Optional[str]
    entity_type: str  # call | prospect
    entity_id: str
    action: str  # created | updated | state_change | error
    trigger_source: str  # calendar_webhook | transcript_webhook | timeout_sweeper | admin | ...
    field_changed: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    trigger_detail: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
