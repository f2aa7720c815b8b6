"""Folder and FolderPermission SQLAlchemy models"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Index, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..access.permissions import FolderAccessLevel
from .base import Base, utcnow


class Folder(Base):
    """Tenant-scoped folder, optionally nested under a parent (NULL = root)."""
    __tablename__ = "folder"
    __table_args__ = (
        Index("ix_folder_tenant_id", "tenant_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    parent_id = Column(Uuid, ForeignKey("folder.id", ondelete="RESTRICT"), nullable=True)
    name = Column(Text, nullable=False)
    created_by_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    permissions = relationship(
        "FolderPermission", back_populates="folder", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Folder(id={self.id}, name='{self.name}')>"


class FolderPermission(Base):
    """Per-folder ACL override binding a role to READ or WRITE access.

    At most one row exists per (folder, role).
    """
    __tablename__ = "folder_permission"
    __table_args__ = (
        UniqueConstraint("folder_id", "role_id", name="uq_folder_permission_folder_role"),
        Index("ix_folder_permission_tenant_folder", "tenant_id", "folder_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    folder_id = Column(Uuid, ForeignKey("folder.id", ondelete="CASCADE"), nullable=False)
    role_id = Column(Uuid, ForeignKey("role.id", ondelete="CASCADE"), nullable=False)
    level = Column(
        SQLEnum(FolderAccessLevel, name="folder_access_level", native_enum=False, length=10),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    folder = relationship("Folder", back_populates="permissions")
