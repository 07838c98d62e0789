"""Postgres-backed audit log adapter."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from call_tracker.application.ports.audit_log_repository import AuditLogRepository
from call_tracker.domain.entities.audit_entry import AuditEntry
from call_tracker.infrastructure.db import get_db_session
from call_tracker.infrastructure.logging.logger import logger

from .models import AuditLogModel, as_utc


class PostgresAuditLogRepository(AuditLogRepository):
    """Postgres implementation of the append-only audit log."""

    def _model_to_entity(self, model: AuditLogModel) -> AuditEntry:
        return AuditEntry(
            audit_id=model.audit_id,
            timestamp=as_utc(model.timestamp),
            tenant_id=model.tenant_id,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            action=model.action,
            trigger_source=model.trigger_source,
            field_changed=model.field_changed,
            old_value=model.old_value,
            new_value=model.new_value,
            trigger_detail=model.trigger_detail,
            metadata=model.metadata_json or {},
        )

    async def append(self, entry: AuditEntry) -> None:
        """
        Append an audit entry.

        Args:
            entry: Entry to append
        """
        db: Session = get_db_session()
        try:
            db.add(
                AuditLogModel(
                    audit_id=entry.audit_id,
                    timestamp=entry.timestamp,
                    tenant_id=entry.tenant_id,
                    entity_type=entry.entity_type,
                    entity_id=entry.entity_id,
                    action=entry.action,
                    field_changed=entry.field_changed,
                    old_value=entry.old_value,
                    new_value=entry.new_value,
                    trigger_source=entry.trigger_source,
                    trigger_detail=entry.trigger_detail,
                    metadata_json=entry.metadata,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while appending audit entry for {entry.entity_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def list_for_entity(self, tenant_id: str, entity_type: str, entity_id: str) -> list[AuditEntry]:
        """
        Get the audit trail of one entity.

        Args:
            tenant_id: Tenant scope
            entity_type: Entity type
            entity_id: Entity identifier

        Returns:
            Entries ordered by timestamp
        """
        db: Session = get_db_session()
        try:
            models = (
                db.query(AuditLogModel)
                .filter(
                    AuditLogModel.tenant_id == tenant_id,
                    AuditLogModel.entity_type == entity_type,
                    AuditLogModel.entity_id == entity_id,
                )
                .order_by(AuditLogModel.timestamp)
                .all()
            )
            return [self._model_to_entity(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing audit trail of {entity_id}: {str(e)}")
            raise
        finally:
            db.close()
