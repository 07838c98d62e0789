"""Audit trail writer."""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from call_tracker.application.dtos.alert import Alert
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.application.ports.audit_log_repository import AuditLogRepository
from call_tracker.application.use_cases.retry import NO_RETRY, RetryPolicy, retry_async
from call_tracker.domain.entities.audit_entry import AuditEntry


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _jsonable(metadata: Optional[dict[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in (metadata or {}).items():
        if value is None or isinstance(value, (bool, int, float, str)):
            result[key] = value
        else:
            result[key] = _stringify(value)
    return result


class AuditTrail:
    """Appends audit entries for every observed change.

    A failing audit write never aborts the change that produced it: the
    failure is logged and alerted and the caller carries on.
    """

    def __init__(
        self,
        repository: AuditLogRepository,
        alert_sink: Optional[AlertSink] = None,
        retry_policy: RetryPolicy = NO_RETRY,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize audit trail.

        Args:
            repository: Append-only audit log
            alert_sink: Optional alert channel for failed writes
            retry_policy: Retry policy for transient storage errors
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._repository = repository
        self._alert_sink = alert_sink
        self._retry_policy = retry_policy
        self._logger = logger

    async def record(
        self,
        tenant_id: Optional[str],
        entity_type: str,
        entity_id: str,
        action: str,
        trigger_source: str,
        field_changed: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
        trigger_detail: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[AuditEntry]:
        """
        Append one audit entry.

        Args:
            tenant_id: Tenant scope
            entity_type: call or prospect
            entity_id: Entity identifier
            action: created, updated, state_change or error
            trigger_source: What caused the change (calendar_webhook, timeout_sweeper, ...)
            field_changed: Name of the changed field, if any
            old_value: Previous value
            new_value: New value
            trigger_detail: Free-form detail (trigger name, reason)
            metadata: Extra JSON-able context

        Returns:
            The stored entry, or None if the write failed
        """
        entry = AuditEntry(
            audit_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            tenant_id=tenant_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            trigger_source=trigger_source,
            field_changed=field_changed,
            old_value=_stringify(old_value),
            new_value=_stringify(new_value),
            trigger_detail=trigger_detail,
            metadata=_jsonable(metadata),
        )

        try:
            await retry_async(
                lambda: self._repository.append(entry),
                self._retry_policy,
                "audit_append",
                logger=self._logger,
            )
        except Exception as e:
            if self._logger:
                self._logger(
                    tenant_id,
                    "audit",
                    level=logging.ERROR,
                    action="audit_write_failed",
                    entity_type=entity_type,
                    entity_id=entity_id,
                    field_changed=field_changed,
                    error=str(e),
                )
            if self._alert_sink:
                await self._alert_sink.send(
                    Alert(
                        severity="high",
                        title="Audit log write failed",
                        details=f"{entity_type} {entity_id} {action} {field_changed or ''}".strip(),
                        tenant_id=tenant_id,
                        error=str(e),
                        suggested_action="Check audit_log storage; the change itself was applied",
                    )
                )
            return None

        return entry

    async def record_field_changes(
        self,
        tenant_id: Optional[str],
        entity_type: str,
        entity_id: str,
        changes: dict[str, tuple[Any, Any]],
        trigger_source: str,
        action: str = "updated",
        trigger_detail: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """
        Append one entry per changed field.

        Args:
            tenant_id: Tenant scope
            entity_type: call or prospect
            entity_id: Entity identifier
            changes: Field name to (old, new); unchanged pairs are skipped
            trigger_source: What caused the change
            action: Audit action
            trigger_detail: Free-form detail
            metadata: Extra JSON-able context

        Returns:
            Number of entries written
        """
        written = 0
        for field_name, (old_value, new_value) in changes.items():
            if old_value == new_value:
                continue
            entry = await self.record(
                tenant_id,
                entity_type,
                entity_id,
                action,
                trigger_source,
                field_changed=field_name,
                old_value=old_value,
                new_value=new_value,
                trigger_detail=trigger_detail,
                metadata=metadata,
            )
            if entry is not None:
                written += 1
        return written

    async def trail(self, tenant_id: str, entity_type: str, entity_id: str) -> list[AuditEntry]:
        """
        Get the chronological audit trail of one entity.

        Args:
            tenant_id: Tenant scope
            entity_type: call or prospect
            entity_id: Entity identifier

        Returns:
            Audit entries, oldest first
        """
        return await self._repository.list_for_entity(tenant_id, entity_type, entity_id)
