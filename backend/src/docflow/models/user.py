"""User, Role and Permission SQLAlchemy models.

RBAC grants flow User -> UserRole -> Role -> RolePermission -> Permission.
Roles are tenant-scoped; permission codes are global and immutable.
"""

import re
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship, validates

from .base import Base, utcnow


class User(Base):
    """User model representing an account inside exactly one tenant."""
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    email = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE")
    mfa_enabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    role_links = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
        UniqueConstraint('tenant_id', 'email', name='uq_user_tenant_email')
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    def to_dict(self):
        """Convert user to dictionary representation"""
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id),
            "email": self.email,
            "name": self.name,
            "status": self.status,
            "mfa_enabled": self.mfa_enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Role(Base):
    """Tenant-scoped named bundle of permissions."""
    __tablename__ = "role"
    __table_args__ = (
        UniqueConstraint('tenant_id', 'name', name='uq_role_tenant_name'),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    permission_links = relationship(
        "RolePermission", back_populates="role", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class Permission(Base):
    """Global capability code. Codes never change once created."""
    __tablename__ = "permission"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=True)


class UserRole(Base):
    """Assignment of a role to a user."""
    __tablename__ = "user_role"

    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(Uuid, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True)

    user = relationship("User", back_populates="role_links")
    role = relationship("Role")


class RolePermission(Base):
    """Grant of a permission code to a role."""
    __tablename__ = "role_permission"

    role_id = Column(Uuid, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permission.id", ondelete="CASCADE"), primary_key=True)

    role = relationship("Role", back_populates="permission_links")
    permission = relationship("Permission")
