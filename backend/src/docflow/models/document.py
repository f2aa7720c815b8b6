"""Document, DocumentVersion and DocumentSequence SQLAlchemy models

A document moves through the lifecycle DRAFT → SUBMITTED → APPROVED → OBSOLETE
(with REJECTED and withdraw branches). Its ``status`` column is written only
by the workflow engine; ``version`` is the optimistic concurrency marker that
advances on every guarded write.
"""

import enum
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..workflow.status import DocumentStatus
from .base import Base, utcnow


class Document(Base):
    """Document model.

    Each document belongs to one tenant and one folder. Revisions link
    forward and backward through supersedes_id / superseded_by_id.
    """
    __tablename__ = "document"
    __table_args__ = (
        Index("ix_document_tenant_id", "tenant_id"),
        Index("ix_document_tenant_folder", "tenant_id", "folder_id"),
        UniqueConstraint("tenant_id", "document_number", name="uq_document_tenant_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    folder_id = Column(Uuid, ForeignKey("folder.id", ondelete="RESTRICT"), nullable=False)
    document_number = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SQLEnum(DocumentStatus, name="document_status", native_enum=False, length=20),
        nullable=False,
        default=DocumentStatus.DRAFT,
    )
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    created_by_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    # Plain pointer (no FK) to keep document <-> document_version acyclic
    current_version_id = Column(Uuid, nullable=True)
    supersedes_id = Column(Uuid, ForeignKey("document.id", ondelete="SET NULL"), nullable=True)
    superseded_by_id = Column(Uuid, ForeignKey("document.id", ondelete="SET NULL"), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    folder = relationship("Folder")

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id),
            "folder_id": str(self.folder_id),
            "document_number": self.document_number,
            "title": self.title,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "created_by_id": str(self.created_by_id) if self.created_by_id else None,
            "current_version_id": str(self.current_version_id) if self.current_version_id else None,
            "supersedes_id": str(self.supersedes_id) if self.supersedes_id else None,
            "superseded_by_id": str(self.superseded_by_id) if self.superseded_by_id else None,
            "version": self.version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class DocumentVersion(Base):
    """One uploaded payload of a document. Immutable once created."""
    __tablename__ = "document_version"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_version_number"),
        Index("ix_document_version_tenant_document", "tenant_id", "document_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    file_name = Column(Text, nullable=False)
    mime_type = Column(Text, nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    storage_key = Column(Text, nullable=False)
    created_by_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class DocumentSequence(Base):
    """Per-tenant, per-year counter behind generated document numbers."""
    __tablename__ = "document_sequence"

    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), primary_key=True)
    year = Column(Integer, primary_key=True)
    current = Column(Integer, nullable=False, default=0)


class DocumentAcknowledgement(Base):
    """A user's confirmation of having read an approved document version."""
    __tablename__ = "document_acknowledgement"
    __table_args__ = (
        UniqueConstraint(
            "document_id", "version_id", "user_id", name="uq_document_acknowledgement"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    version_id = Column(Uuid, ForeignKey("document_version.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    acknowledged_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
