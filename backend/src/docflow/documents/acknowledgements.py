"""Read acknowledgements of approved documents."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ..access.identity import IdentityContext
from ..audit.ports import AuditEmitter
from ..audit.schemas import AuditAction, AuditEntityType, AuditMetadata
from ..errors import DomainViolationError, NotFoundError
from ..persistence.ports import AcknowledgementRecord, DocumentGateway
from ..workflow.status import EffectiveStatus, require_effective_status


def acknowledge_document(
    gateway: DocumentGateway,
    audit: AuditEmitter,
    identity: IdentityContext,
    document_id: UUID,
    now: Optional[datetime] = None,
) -> AcknowledgementRecord:
    """Acknowledge the current version of an approved document.

    Acknowledging the same version twice returns the existing record and
    writes no second audit entry.

    Raises:
        NotFoundError: Document absent or owned by another tenant
        DomainViolationError: Document not effectively APPROVED, or it has
            no current version
    """
    identity.validate()
    now = now or datetime.now(timezone.utc)

    def work() -> AcknowledgementRecord:
        document = gateway.find_document(document_id, identity.tenant_id)
        if document is None:
            raise NotFoundError("document", document_id)

        require_effective_status(
            document, {EffectiveStatus.APPROVED}, "acknowledge this document", now=now
        )
        if document.current_version_id is None:
            raise DomainViolationError("Cannot acknowledge a document without a version")

        existing = gateway.find_acknowledgement(
            document.id, document.current_version_id, identity.user_id, identity.tenant_id
        )
        if existing is not None:
            return existing

        ack = gateway.add_acknowledgement(
            tenant_id=identity.tenant_id,
            document_id=document.id,
            version_id=document.current_version_id,
            user_id=identity.user_id,
            now=now,
        )
        audit.record(
            tenant_id=identity.tenant_id,
            actor_id=identity.user_id,
            action=AuditAction.ACKNOWLEDGED,
            entity_type=AuditEntityType.DOCUMENT,
            entity_id=document.id,
            metadata=AuditMetadata(
                version_id=document.current_version_id,
                document_number=document.document_number,
            ),
            now=now,
        )
        return ack

    return gateway.run_transaction(work)
