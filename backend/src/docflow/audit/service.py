"""Audit logging service.

Provides a centralized interface for creating immutable audit log entries
and the SQLAlchemy-backed AuditEmitter used by the access and workflow core.

Audit Events:
- PERMISSION_DENIED
- DMS.SUBMIT, DMS.APPROVE, DMS.REJECT, DMS.WITHDRAW, DMS.OBSOLETE
- DMS.DOCUMENT_CREATED, DMS.REVISION_CREATED
- DMS.VERSION_CREATE, DMS.ACKNOWLEDGED
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import InfrastructureError
from ..models.audit_log import AuditLog
from ..models.base import utcnow
from .ports import AuditEmitter
from .schemas import AuditMetadata

logger = logging.getLogger(__name__)


def log_audit_event(
    db: Session,
    tenant_id: UUID,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[AuditMetadata] = None,
    created_at: Optional[datetime] = None,
) -> AuditLog:
    """Create an audit log entry.

    The entry is flushed but not committed; it becomes durable together with
    the rest of the caller's transaction.

    Args:
        db: Database session
        tenant_id: Tenant ID
        action: Event action (e.g., "DMS.APPROVE", "PERMISSION_DENIED")
        actor_id: User who performed the action (None for system events)
        entity_type: Type of entity affected (e.g., "DOCUMENT")
        entity_id: ID of affected entity
        metadata: Versioned metadata map
        created_at: Event timestamp (defaults to the current UTC time)

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_audit_event(
            db=db,
            tenant_id=identity.tenant_id,
            action="DMS.APPROVE",
            actor_id=identity.user_id,
            entity_type="DOCUMENT",
            entity_id=document.id,
            metadata=AuditMetadata(from_status="SUBMITTED", to_status="APPROVED"),
        )
    """
    audit_entry = AuditLog(
        tenant_id=tenant_id,
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=(metadata or AuditMetadata()).to_json(),
        created_at=created_at or utcnow(),
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry


class SqlAuditEmitter(AuditEmitter):
    """AuditEmitter writing to the audit_log table through a shared session.

    The session must be the same one the persistence gateway uses so that
    audit rows share the transaction of the change they describe.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        tenant_id: UUID,
        actor_id: Optional[UUID],
        action: str,
        entity_type: Optional[str],
        entity_id: Optional[UUID],
        metadata: Optional[AuditMetadata] = None,
        now: Optional[datetime] = None,
    ) -> None:
        try:
            log_audit_event(
                db=self.db,
                tenant_id=tenant_id,
                action=action,
                actor_id=actor_id,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata=metadata,
                created_at=now,
            )
        except SQLAlchemyError as exc:
            logger.exception(
                "Audit write failed",
                extra={"tenant_id": tenant_id, "user_id": actor_id},
            )
            raise InfrastructureError(f"Audit write failed for action {action}") from exc
