"""Audit trail - emitter port, SQL adapter and metadata schema."""

from .ports import AuditEmitter
from .schemas import AuditAction, AuditEntityType, AuditMetadata

__all__ = ["AuditEmitter", "AuditAction", "AuditEntityType", "AuditMetadata"]
