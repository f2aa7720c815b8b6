"""SQLAlchemy implementation of the DocumentGateway port."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Optional, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..access.loaders import load_folder_acl
from ..access.resolver import FolderAcl
from ..errors import InfrastructureError
from ..models.document import (
    Document,
    DocumentAcknowledgement,
    DocumentSequence,
    DocumentVersion,
)
from ..models.folder import Folder
from ..models.workflow_history import WorkflowHistory
from ..workflow.status import DocumentStatus
from .ports import (
    AcknowledgementRecord,
    DocumentGateway,
    DocumentRecord,
    FolderRecord,
    VersionRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Dialects with an atomic INSERT .. ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def _document_record(document: Document) -> DocumentRecord:
    return DocumentRecord(
        id=document.id,
        tenant_id=document.tenant_id,
        folder_id=document.folder_id,
        document_number=document.document_number,
        title=document.title,
        status=DocumentStatus(document.status),
        version=document.version,
        expiry_date=document.expiry_date,
        description=document.description,
        created_by_id=document.created_by_id,
        current_version_id=document.current_version_id,
        supersedes_id=document.supersedes_id,
        superseded_by_id=document.superseded_by_id,
        updated_at=document.updated_at,
    )


def _version_record(version: DocumentVersion) -> VersionRecord:
    return VersionRecord(
        id=version.id,
        tenant_id=version.tenant_id,
        document_id=version.document_id,
        version_number=version.version_number,
        file_name=version.file_name,
        mime_type=version.mime_type,
        size_bytes=version.size_bytes,
        storage_key=version.storage_key,
        created_by_id=version.created_by_id,
        created_at=version.created_at,
    )


def _acknowledgement_record(ack: DocumentAcknowledgement) -> AcknowledgementRecord:
    return AcknowledgementRecord(
        id=ack.id,
        tenant_id=ack.tenant_id,
        document_id=ack.document_id,
        version_id=ack.version_id,
        user_id=ack.user_id,
        acknowledged_at=ack.acknowledged_at,
    )


class SqlAlchemyDocumentGateway(DocumentGateway):
    """DocumentGateway backed by a SQLAlchemy session.

    The session is shared with the SqlAuditEmitter of the same request so
    audit rows commit or roll back together with the change they describe.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage_errors(self, operation: str):
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception(f"Persistence failure during {operation}")
            raise InfrastructureError(f"Persistence failure during {operation}") from exc

    def run_transaction(self, work: Callable[[], T]) -> T:
        try:
            result = work()
            self.db.commit()
            return result
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Transaction failed and was rolled back")
            raise InfrastructureError("Transaction failed") from exc
        except Exception:
            self.db.rollback()
            raise

    def find_document(self, document_id: UUID, tenant_id: UUID) -> Optional[DocumentRecord]:
        with self._storage_errors("find_document"):
            document = self.db.execute(
                select(Document)
                .where(Document.id == document_id, Document.tenant_id == tenant_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        return _document_record(document) if document is not None else None

    def conditional_update_status(
        self,
        document_id: UUID,
        tenant_id: UUID,
        expected_version: int,
        new_status: DocumentStatus,
        actor_id: UUID,
        now: datetime,
    ) -> bool:
        with self._storage_errors("conditional_update_status"):
            result = self.db.execute(
                update(Document)
                .where(
                    Document.id == document_id,
                    Document.tenant_id == tenant_id,
                    Document.version == expected_version,
                )
                .values(
                    status=new_status,
                    version=Document.version + 1,
                    updated_by_id=actor_id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    def find_folder(self, folder_id: UUID, tenant_id: UUID) -> Optional[FolderRecord]:
        with self._storage_errors("find_folder"):
            folder = self.db.execute(
                select(Folder).where(Folder.id == folder_id, Folder.tenant_id == tenant_id)
            ).scalar_one_or_none()
        if folder is None:
            return None
        return FolderRecord(
            id=folder.id,
            tenant_id=folder.tenant_id,
            name=folder.name,
            parent_id=folder.parent_id,
        )

    def load_folder_acl(self, tenant_id: UUID, folder_id: UUID) -> FolderAcl:
        with self._storage_errors("load_folder_acl"):
            return load_folder_acl(self.db, tenant_id, folder_id)

    def next_document_number(self, tenant_id: UUID, prefix: str, year: int) -> str:
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise InfrastructureError(f"Document numbering is not supported on {dialect}")
        with self._storage_errors("next_document_number"):
            current = self.db.execute(
                insert(DocumentSequence)
                .values(tenant_id=tenant_id, year=year, current=1)
                .on_conflict_do_update(
                    index_elements=[DocumentSequence.tenant_id, DocumentSequence.year],
                    set_={"current": DocumentSequence.current + 1},
                )
                .returning(DocumentSequence.current)
            ).scalar_one()
        return f"{prefix}-{year}-{current:05d}"

    def create_document(
        self,
        tenant_id: UUID,
        folder_id: UUID,
        document_number: str,
        title: str,
        created_by_id: UUID,
        now: datetime,
        description: Optional[str] = None,
        expiry_date: Optional[datetime] = None,
        supersedes_id: Optional[UUID] = None,
    ) -> DocumentRecord:
        document = Document(
            tenant_id=tenant_id,
            folder_id=folder_id,
            document_number=document_number,
            title=title,
            description=description,
            status=DocumentStatus.DRAFT,
            expiry_date=expiry_date,
            created_by_id=created_by_id,
            updated_by_id=created_by_id,
            supersedes_id=supersedes_id,
            version=1,
            created_at=now,
            updated_at=now,
        )
        with self._storage_errors("create_document"):
            self.db.add(document)
            self.db.flush()
        return _document_record(document)

    def mark_superseded(
        self,
        document_id: UUID,
        tenant_id: UUID,
        expected_version: int,
        successor_id: UUID,
        actor_id: UUID,
        now: datetime,
    ) -> bool:
        with self._storage_errors("mark_superseded"):
            result = self.db.execute(
                update(Document)
                .where(
                    Document.id == document_id,
                    Document.tenant_id == tenant_id,
                    Document.version == expected_version,
                    Document.superseded_by_id.is_(None),
                )
                .values(
                    superseded_by_id=successor_id,
                    version=Document.version + 1,
                    updated_by_id=actor_id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    def next_version_number(self, document_id: UUID, tenant_id: UUID) -> int:
        with self._storage_errors("next_version_number"):
            highest = self.db.execute(
                select(func.max(DocumentVersion.version_number)).where(
                    DocumentVersion.document_id == document_id,
                    DocumentVersion.tenant_id == tenant_id,
                )
            ).scalar()
        return (highest or 0) + 1

    def add_version(
        self,
        tenant_id: UUID,
        document_id: UUID,
        version_number: int,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        storage_key: str,
        created_by_id: UUID,
        now: datetime,
    ) -> VersionRecord:
        version = DocumentVersion(
            tenant_id=tenant_id,
            document_id=document_id,
            version_number=version_number,
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            storage_key=storage_key,
            created_by_id=created_by_id,
            created_at=now,
        )
        with self._storage_errors("add_version"):
            self.db.add(version)
            self.db.flush()
        return _version_record(version)

    def find_version(self, version_id: UUID, tenant_id: UUID) -> Optional[VersionRecord]:
        with self._storage_errors("find_version"):
            version = self.db.execute(
                select(DocumentVersion).where(
                    DocumentVersion.id == version_id,
                    DocumentVersion.tenant_id == tenant_id,
                )
            ).scalar_one_or_none()
        return _version_record(version) if version is not None else None

    def set_current_version(
        self,
        document_id: UUID,
        tenant_id: UUID,
        expected_version: int,
        version_id: UUID,
        actor_id: UUID,
        now: datetime,
    ) -> bool:
        with self._storage_errors("set_current_version"):
            result = self.db.execute(
                update(Document)
                .where(
                    Document.id == document_id,
                    Document.tenant_id == tenant_id,
                    Document.version == expected_version,
                )
                .values(
                    current_version_id=version_id,
                    version=Document.version + 1,
                    updated_by_id=actor_id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    def add_workflow_history(
        self,
        tenant_id: UUID,
        document_id: UUID,
        action: str,
        from_status: DocumentStatus,
        to_status: DocumentStatus,
        actor_id: UUID,
        now: datetime,
        comment: Optional[str] = None,
    ) -> None:
        with self._storage_errors("add_workflow_history"):
            self.db.add(WorkflowHistory(
                tenant_id=tenant_id,
                document_id=document_id,
                action=action,
                from_status=DocumentStatus(from_status).value,
                to_status=DocumentStatus(to_status).value,
                comment=comment,
                actor_id=actor_id,
                created_at=now,
            ))
            self.db.flush()

    def find_acknowledgement(
        self, document_id: UUID, version_id: UUID, user_id: UUID, tenant_id: UUID
    ) -> Optional[AcknowledgementRecord]:
        with self._storage_errors("find_acknowledgement"):
            ack = self.db.execute(
                select(DocumentAcknowledgement).where(
                    DocumentAcknowledgement.tenant_id == tenant_id,
                    DocumentAcknowledgement.document_id == document_id,
                    DocumentAcknowledgement.version_id == version_id,
                    DocumentAcknowledgement.user_id == user_id,
                )
            ).scalar_one_or_none()
        return _acknowledgement_record(ack) if ack is not None else None

    def add_acknowledgement(
        self,
        tenant_id: UUID,
        document_id: UUID,
        version_id: UUID,
        user_id: UUID,
        now: datetime,
    ) -> AcknowledgementRecord:
        ack = DocumentAcknowledgement(
            tenant_id=tenant_id,
            document_id=document_id,
            version_id=version_id,
            user_id=user_id,
            acknowledged_at=now,
        )
        with self._storage_errors("add_acknowledgement"):
            self.db.add(ack)
            self.db.flush()
        return _acknowledgement_record(ack)
