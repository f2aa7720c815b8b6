"""Document Gateway Port - persistence contract for the workflow core.

The workflow engine, the guard and the document services only talk to
storage through this interface. Every read is tenant-scoped: a row that
exists under another tenant is reported exactly like a missing one (None).

Status changes are compare-and-swap writes on the document's ``version``
counter. A write that matches zero rows means a concurrent writer won; the
gateway reports that with a False result and the caller raises
StateMismatchError.

Implementations wrap their own driver errors into InfrastructureError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, TypeVar
from uuid import UUID

from ..access.resolver import FolderAcl
from ..workflow.status import DocumentStatus

T = TypeVar("T")


@dataclass(frozen=True)
class DocumentRecord:
    """Snapshot of a document row as read inside the current transaction."""
    id: UUID
    tenant_id: UUID
    folder_id: UUID
    document_number: str
    title: str
    status: DocumentStatus
    version: int
    expiry_date: Optional[datetime] = None
    description: Optional[str] = None
    created_by_id: Optional[UUID] = None
    current_version_id: Optional[UUID] = None
    supersedes_id: Optional[UUID] = None
    superseded_by_id: Optional[UUID] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class FolderRecord:
    id: UUID
    tenant_id: UUID
    name: str
    parent_id: Optional[UUID] = None


@dataclass(frozen=True)
class VersionRecord:
    """Metadata of one uploaded document payload."""
    id: UUID
    tenant_id: UUID
    document_id: UUID
    version_number: int
    file_name: str
    mime_type: str
    size_bytes: int
    storage_key: str
    created_by_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AcknowledgementRecord:
    id: UUID
    tenant_id: UUID
    document_id: UUID
    version_id: UUID
    user_id: UUID
    acknowledged_at: datetime


class DocumentGateway(ABC):
    """Port interface for document persistence."""

    @abstractmethod
    def run_transaction(self, work: Callable[[], T]) -> T:
        """Run ``work`` as one atomic unit.

        Commits when ``work`` returns, rolls back when it raises. Business
        errors raised by ``work`` propagate unchanged; storage failures
        surface as InfrastructureError.
        """

    @abstractmethod
    def find_document(self, document_id: UUID, tenant_id: UUID) -> Optional[DocumentRecord]:
        """Fresh read of a document, None if absent or owned by another tenant."""

    @abstractmethod
    def conditional_update_status(
        self,
        document_id: UUID,
        tenant_id: UUID,
        expected_version: int,
        new_status: DocumentStatus,
        actor_id: UUID,
        now: datetime,
    ) -> bool:
        """Set the status and advance the version if it is still ``expected_version``.

        Returns:
            bool: True if exactly one row changed, False if none did
        """

    @abstractmethod
    def find_folder(self, folder_id: UUID, tenant_id: UUID) -> Optional[FolderRecord]:
        """Tenant-scoped folder lookup."""

    @abstractmethod
    def load_folder_acl(self, tenant_id: UUID, folder_id: UUID) -> FolderAcl:
        """Snapshot of the folder overrides bound to ``folder_id``."""

    @abstractmethod
    def next_document_number(self, tenant_id: UUID, prefix: str, year: int) -> str:
        """Allocate the next number of the tenant's yearly sequence (PREFIX-YYYY-NNNNN)."""

    @abstractmethod
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
        """Insert a new DRAFT document at version 1."""

    @abstractmethod
    def mark_superseded(
        self,
        document_id: UUID,
        tenant_id: UUID,
        expected_version: int,
        successor_id: UUID,
        actor_id: UUID,
        now: datetime,
    ) -> bool:
        """Point the document at its successor revision (compare-and-swap on version)."""

    @abstractmethod
    def next_version_number(self, document_id: UUID, tenant_id: UUID) -> int:
        """One past the highest existing version number (1 for the first upload)."""

    @abstractmethod
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
        """Insert an immutable version row."""

    @abstractmethod
    def find_version(self, version_id: UUID, tenant_id: UUID) -> Optional[VersionRecord]:
        """Tenant-scoped version lookup."""

    @abstractmethod
    def set_current_version(
        self,
        document_id: UUID,
        tenant_id: UUID,
        expected_version: int,
        version_id: UUID,
        actor_id: UUID,
        now: datetime,
    ) -> bool:
        """Move the current version pointer (compare-and-swap on version)."""

    @abstractmethod
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
        """Append one workflow history row."""

    @abstractmethod
    def find_acknowledgement(
        self, document_id: UUID, version_id: UUID, user_id: UUID, tenant_id: UUID
    ) -> Optional[AcknowledgementRecord]:
        """Existing acknowledgement of a version by a user, if any."""

    @abstractmethod
    def add_acknowledgement(
        self,
        tenant_id: UUID,
        document_id: UUID,
        version_id: UUID,
        user_id: UUID,
        now: datetime,
    ) -> AcknowledgementRecord:
        """Insert an acknowledgement row."""
