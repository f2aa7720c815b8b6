"""Access control - identity snapshots, permission classes and the resolver.

Database-backed helpers live in access.loaders and access.guard and are
imported from there directly.
"""

from .identity import IdentityContext
from .permissions import (
    FolderAccessLevel,
    PermissionClass,
    PermissionCode,
    classify,
)
from .resolver import Decision, FolderAcl, PermissionDecision, PermissionResolver

__all__ = [
    "IdentityContext",
    "FolderAccessLevel",
    "PermissionClass",
    "PermissionCode",
    "classify",
    "Decision",
    "FolderAcl",
    "PermissionDecision",
    "PermissionResolver",
]
