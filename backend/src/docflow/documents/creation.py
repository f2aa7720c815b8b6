"""Document creation - new DRAFT documents with generated numbers."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ..access.identity import IdentityContext
from ..audit.ports import AuditEmitter
from ..audit.schemas import AuditAction, AuditEntityType, AuditMetadata
from ..errors import DomainViolationError, NotFoundError
from ..persistence.ports import DocumentGateway, DocumentRecord


def create_document(
    gateway: DocumentGateway,
    audit: AuditEmitter,
    identity: IdentityContext,
    folder_id: UUID,
    title: str,
    description: Optional[str] = None,
    expiry_date: Optional[datetime] = None,
    number_prefix: str = "DOC",
    now: Optional[datetime] = None,
) -> DocumentRecord:
    """Create a DRAFT document in a folder.

    The document number comes from the tenant's yearly sequence, e.g.
    DOC-2026-00042. Authorization (DMS_DOCUMENT_CREATE on the folder) is the
    caller's job.

    Raises:
        DomainViolationError: If the title is blank
        NotFoundError: If the folder is absent or owned by another tenant
    """
    identity.validate()
    if not title or not title.strip():
        raise DomainViolationError("A document title is required")
    now = now or datetime.now(timezone.utc)

    def work() -> DocumentRecord:
        folder = gateway.find_folder(folder_id, identity.tenant_id)
        if folder is None:
            raise NotFoundError("folder", folder_id)

        number = gateway.next_document_number(identity.tenant_id, number_prefix, now.year)
        document = gateway.create_document(
            tenant_id=identity.tenant_id,
            folder_id=folder.id,
            document_number=number,
            title=title.strip(),
            created_by_id=identity.user_id,
            now=now,
            description=description,
            expiry_date=expiry_date,
        )
        audit.record(
            tenant_id=identity.tenant_id,
            actor_id=identity.user_id,
            action=AuditAction.DOCUMENT_CREATED,
            entity_type=AuditEntityType.DOCUMENT,
            entity_id=document.id,
            metadata=AuditMetadata(
                document_number=number,
                folder_id=folder.id,
                to_status=document.status.value,
            ),
            now=now,
        )
        return document

    return gateway.run_transaction(work)
