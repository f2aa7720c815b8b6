"""Tenant model - Root entity for multi-tenant isolation"""

import re
from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, Uuid
from sqlalchemy.orm import validates

from .base import Base, utcnow


class Tenant(Base):
    """
    Tenant model - isolation boundary of the system.

    Every other tenant-scoped table references tenant.id. Tenants are created
    by provisioning and are never mutated by the access or workflow core.
    """
    __tablename__ = "tenant"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @validates('slug')
    def validate_slug(self, key, value):
        """
        Ensure slug is URL-friendly.

        Pattern: ^[a-z0-9-]+$

        Raises:
            ValueError: If slug doesn't match pattern or length requirements
        """
        if not re.match(r'^[a-z0-9-]+$', value):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )
        if len(value) < 2 or len(value) > 100:
            raise ValueError("Slug must be between 2 and 100 characters")
        return value

    @validates('name')
    def validate_name(self, key, value):
        if not value or len(value.strip()) == 0:
            raise ValueError("Tenant name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug='{self.slug}')>"
