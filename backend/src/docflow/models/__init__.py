"""SQLAlchemy Models for DocFlow"""

from .base import Base
from .tenant import Tenant
from .user import User, Role, Permission, UserRole, RolePermission
from .folder import Folder, FolderPermission
from .document import Document, DocumentVersion, DocumentSequence, DocumentAcknowledgement
from .workflow_history import WorkflowHistory
from .audit_log import AuditLog

__all__ = [
    "Base",
    "Tenant",
    "User",
    "Role",
    "Permission",
    "UserRole",
    "RolePermission",
    "Folder",
    "FolderPermission",
    "Document",
    "DocumentVersion",
    "DocumentSequence",
    "DocumentAcknowledgement",
    "WorkflowHistory",
    "AuditLog",
]
