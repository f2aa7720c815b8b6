"""Permission codes, permission classes and folder access levels.

Permission codes are global capability identifiers granted to tenant roles.
For folder-scoped checks every code belongs to exactly one class, and the
class decides how a folder ACL override may adjust the tenant RBAC result:

┌────────────────┬───────────────┬──────────────┬──────────────┐
│ Class          │ No folder ACL │ Folder READ  │ Folder WRITE │
├────────────────┼───────────────┼──────────────┼──────────────┤
│ READ           │ RBAC          │ ALLOW        │ ALLOW        │
│ WRITE          │ RBAC          │ DENY         │ ALLOW        │
│ GATED          │ RBAC          │ DENY         │ RBAC         │
│ ADMINISTRATIVE │ RBAC          │ RBAC         │ RBAC         │
└────────────────┴───────────────┴──────────────┴──────────────┘

WRITE covers document CRUD-class operations a folder WRITE override may
unlock. GATED covers document capabilities that always need a tenant grant
(create, approve, reject, obsolete, sharing, folder management), which a
folder READ override still narrows. ADMINISTRATIVE codes ignore folders.
"""

from enum import Enum
from typing import FrozenSet, Union


class PermissionCode(str, Enum):
    """Known permission codes.

    Values are stored as TEXT in the permission table and must match exactly.
    """
    USER_VIEW = "USER_VIEW"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    ROLE_VIEW = "ROLE_VIEW"
    ROLE_CREATE = "ROLE_CREATE"
    ROLE_UPDATE = "ROLE_UPDATE"
    ROLE_DELETE = "ROLE_DELETE"
    ROLE_ASSIGN = "ROLE_ASSIGN"
    PERMISSION_VIEW = "PERMISSION_VIEW"
    AUDIT_VIEW = "AUDIT_VIEW"
    ADMIN_ACCESS = "ADMIN_ACCESS"

    DMS_VIEW = "DMS_VIEW"
    DMS_DOCUMENT_READ = "DMS_DOCUMENT_READ"
    DMS_DOCUMENT_CREATE = "DMS_DOCUMENT_CREATE"
    DMS_DOCUMENT_EDIT = "DMS_DOCUMENT_EDIT"
    DMS_DOCUMENT_UPLOAD = "DMS_DOCUMENT_UPLOAD"
    DMS_DOCUMENT_DELETE = "DMS_DOCUMENT_DELETE"
    DMS_DOCUMENT_SUBMIT = "DMS_DOCUMENT_SUBMIT"
    DMS_DOCUMENT_WITHDRAW = "DMS_DOCUMENT_WITHDRAW"
    DMS_DOCUMENT_APPROVE = "DMS_DOCUMENT_APPROVE"
    DMS_DOCUMENT_REJECT = "DMS_DOCUMENT_REJECT"
    DMS_DOCUMENT_OBSOLETE = "DMS_DOCUMENT_OBSOLETE"
    DMS_DOCUMENT_TYPE_MANAGE = "DMS_DOCUMENT_TYPE_MANAGE"
    DMS_FOLDER_READ = "DMS_FOLDER_READ"
    DMS_FOLDER_CREATE = "DMS_FOLDER_CREATE"
    DMS_FOLDER_UPDATE = "DMS_FOLDER_UPDATE"
    DMS_FOLDER_DELETE = "DMS_FOLDER_DELETE"
    DMS_SHARE_CREATE = "DMS_SHARE_CREATE"
    DMS_SHARE_READ = "DMS_SHARE_READ"
    DMS_SHARE_REVOKE = "DMS_SHARE_REVOKE"
    DMS_AUDIT_EXPORT = "DMS_AUDIT_EXPORT"


class PermissionClass(str, Enum):
    """How a permission code reacts to folder ACL overrides."""
    READ = "READ"
    WRITE = "WRITE"
    GATED = "GATED"
    ADMINISTRATIVE = "ADMINISTRATIVE"


class FolderAccessLevel(str, Enum):
    """Access level a FolderPermission row binds to a role."""
    READ = "READ"
    WRITE = "WRITE"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    FolderAccessLevel.READ: 1,
    FolderAccessLevel.WRITE: 2,
}


READ_CLASS: FrozenSet[str] = frozenset({
    PermissionCode.DMS_VIEW.value,
    PermissionCode.DMS_DOCUMENT_READ.value,
    PermissionCode.DMS_FOLDER_READ.value,
    PermissionCode.DMS_SHARE_READ.value,
})

WRITE_CLASS: FrozenSet[str] = frozenset({
    PermissionCode.DMS_DOCUMENT_EDIT.value,
    PermissionCode.DMS_DOCUMENT_UPLOAD.value,
    PermissionCode.DMS_DOCUMENT_SUBMIT.value,
    PermissionCode.DMS_DOCUMENT_WITHDRAW.value,
    PermissionCode.DMS_DOCUMENT_DELETE.value,
})

GATED_CLASS: FrozenSet[str] = frozenset({
    PermissionCode.DMS_DOCUMENT_CREATE.value,
    PermissionCode.DMS_DOCUMENT_APPROVE.value,
    PermissionCode.DMS_DOCUMENT_REJECT.value,
    PermissionCode.DMS_DOCUMENT_OBSOLETE.value,
    PermissionCode.DMS_SHARE_CREATE.value,
    PermissionCode.DMS_SHARE_REVOKE.value,
    PermissionCode.DMS_FOLDER_CREATE.value,
    PermissionCode.DMS_FOLDER_UPDATE.value,
    PermissionCode.DMS_FOLDER_DELETE.value,
})

# Codes a document's creator keeps while the document is still in progress
CREATOR_BYPASS_CODES: FrozenSet[str] = frozenset({
    PermissionCode.DMS_DOCUMENT_EDIT.value,
    PermissionCode.DMS_DOCUMENT_UPLOAD.value,
    PermissionCode.DMS_DOCUMENT_WITHDRAW.value,
})


def code_value(code: Union[PermissionCode, str]) -> str:
    """Return the plain string value of a permission code."""
    if isinstance(code, Enum):
        return code.value
    return code


def classify(code: Union[PermissionCode, str]) -> PermissionClass:
    """Return the permission class of a code.

    Unknown codes are treated as ADMINISTRATIVE so that no folder override can
    ever unlock them.

    Examples:
        >>> classify(PermissionCode.DMS_DOCUMENT_EDIT)
        <PermissionClass.WRITE: 'WRITE'>
        >>> classify("ROLE_ASSIGN")
        <PermissionClass.ADMINISTRATIVE: 'ADMINISTRATIVE'>
    """
    value = code_value(code)
    if value in READ_CLASS:
        return PermissionClass.READ
    if value in WRITE_CLASS:
        return PermissionClass.WRITE
    if value in GATED_CLASS:
        return PermissionClass.GATED
    return PermissionClass.ADMINISTRATIVE
