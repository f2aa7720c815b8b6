"""Version registration - metadata of uploaded document payloads.

File bytes live in external storage; only the storage key and file facts
are recorded here. Versions are immutable once created.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ..access.identity import IdentityContext
from ..audit.ports import AuditEmitter
from ..audit.schemas import AuditAction, AuditEntityType, AuditMetadata
from ..errors import DomainViolationError, NotFoundError, StateMismatchError
from ..persistence.ports import DocumentGateway, VersionRecord
from ..workflow.status import EffectiveStatus, require_effective_status

# Versions may only be added while a document is being (re)worked
UPLOAD_STATUSES = frozenset({EffectiveStatus.DRAFT, EffectiveStatus.REJECTED})

DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024


def register_version(
    gateway: DocumentGateway,
    audit: AuditEmitter,
    identity: IdentityContext,
    document_id: UUID,
    file_name: str,
    mime_type: str,
    size_bytes: int,
    storage_key: str,
    now: Optional[datetime] = None,
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
) -> VersionRecord:
    """Record a new version and make it the document's current version.

    Raises:
        NotFoundError: Document absent or owned by another tenant
        DomainViolationError: Document expired, not DRAFT/REJECTED, or the
            file facts are invalid
        StateMismatchError: The document changed concurrently
    """
    identity.validate()
    if not file_name or not storage_key:
        raise DomainViolationError("A version needs a file name and a storage key")
    if size_bytes < 0:
        raise DomainViolationError("File size cannot be negative")
    if size_bytes > max_size_bytes:
        raise DomainViolationError(f"File size exceeds the maximum of {max_size_bytes} bytes")
    now = now or datetime.now(timezone.utc)

    def work() -> VersionRecord:
        document = gateway.find_document(document_id, identity.tenant_id)
        if document is None:
            raise NotFoundError("document", document_id)

        require_effective_status(document, UPLOAD_STATUSES, "upload a version", now=now)

        version = gateway.add_version(
            tenant_id=identity.tenant_id,
            document_id=document.id,
            version_number=gateway.next_version_number(document.id, identity.tenant_id),
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            storage_key=storage_key,
            created_by_id=identity.user_id,
            now=now,
        )
        if not gateway.set_current_version(
            document.id,
            identity.tenant_id,
            expected_version=document.version,
            version_id=version.id,
            actor_id=identity.user_id,
            now=now,
        ):
            raise StateMismatchError(document.id, expected_version=document.version)

        audit.record(
            tenant_id=identity.tenant_id,
            actor_id=identity.user_id,
            action=AuditAction.VERSION_CREATED,
            entity_type=AuditEntityType.DOCUMENT,
            entity_id=document.id,
            metadata=AuditMetadata(
                version_id=version.id,
                version_number=version.version_number,
                file_name=file_name,
                document_number=document.document_number,
            ),
            now=now,
        )
        return version

    return gateway.run_transaction(work)
