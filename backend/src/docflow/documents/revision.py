"""Revision policy - replacing an approved document with a new draft.

The original stays APPROVED and immutable apart from its superseded_by_id
link; the revision starts over as a DRAFT in the same folder. Both writes and
the audit record commit together or not at all.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ..access.identity import IdentityContext
from ..audit.ports import AuditEmitter
from ..audit.schemas import AuditAction, AuditEntityType, AuditMetadata
from ..errors import DocumentAlreadySupersededError, NotFoundError, StateMismatchError
from ..persistence.ports import DocumentGateway, DocumentRecord
from ..workflow.status import EffectiveStatus, require_effective_status

logger = logging.getLogger(__name__)


def create_revision(
    gateway: DocumentGateway,
    audit: AuditEmitter,
    identity: IdentityContext,
    document_id: UUID,
    number_prefix: str = "DOC",
    now: Optional[datetime] = None,
) -> DocumentRecord:
    """Create a new DRAFT revision of an approved document.

    Args:
        gateway: Persistence gateway
        audit: Audit emitter sharing the gateway's transaction
        identity: Caller snapshot (already authorized for DMS_DOCUMENT_CREATE)
        document_id: Document to revise
        number_prefix: Prefix for the revision's document number
        now: Reference instant for the expiry check

    Returns:
        DocumentRecord: The new revision

    Raises:
        NotFoundError: Document absent or owned by another tenant
        DomainViolationError: Document is not effectively APPROVED (EXPIRED included)
        DocumentAlreadySupersededError: A revision already exists
        StateMismatchError: The original changed concurrently
    """
    identity.validate()
    now = now or datetime.now(timezone.utc)

    def work() -> DocumentRecord:
        original = gateway.find_document(document_id, identity.tenant_id)
        if original is None:
            raise NotFoundError("document", document_id)

        require_effective_status(
            original, {EffectiveStatus.APPROVED}, "revise this document", now=now
        )
        if original.superseded_by_id is not None:
            raise DocumentAlreadySupersededError(original.document_number)

        number = gateway.next_document_number(identity.tenant_id, number_prefix, now.year)
        revision = gateway.create_document(
            tenant_id=identity.tenant_id,
            folder_id=original.folder_id,
            document_number=number,
            title=original.title,
            created_by_id=identity.user_id,
            now=now,
            description=original.description,
            supersedes_id=original.id,
        )

        marked = gateway.mark_superseded(
            original.id,
            identity.tenant_id,
            expected_version=original.version,
            successor_id=revision.id,
            actor_id=identity.user_id,
            now=now,
        )
        if not marked:
            raise StateMismatchError(original.id, expected_version=original.version)

        audit.record(
            tenant_id=identity.tenant_id,
            actor_id=identity.user_id,
            action=AuditAction.REVISION_CREATED,
            entity_type=AuditEntityType.DOCUMENT,
            entity_id=revision.id,
            metadata=AuditMetadata(
                original_document_id=original.id,
                new_document_id=revision.id,
                document_number=number,
            ),
            now=now,
        )
        return revision

    revision = gateway.run_transaction(work)
    logger.info(
        f"Created revision {revision.document_number}",
        extra={"tenant_id": identity.tenant_id, "user_id": identity.user_id, "document_id": document_id},
    )
    return revision
