"""Permission resolver - tenant RBAC combined with folder ACL overrides.

The resolver is a pure decision function: it reads only the identity
snapshot and the FolderAcl snapshot it was constructed with, performs no I/O,
and never raises for an ordinary denial. Callers map DENY to an
AuthorizationDenied error and audit it (see access.guard).

Evaluation order:
    1. Validate the identity snapshot (malformed -> InvalidIdentityError).
    2. Classify the permission code (see access.permissions).
    3. Find the strongest folder override among the caller's roles
       (WRITE beats READ). Administrative codes ignore folders.
    4. Look the (class, override) pair up in DECISION_TABLE.
    5. Creator bypass: edit/withdraw-class codes on the caller's own DRAFT or
       SUBMITTED document are allowed despite a restrictive folder override,
       as long as tenant RBAC grants the code itself.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union
from uuid import UUID

from .identity import IdentityContext
from .permissions import (
    CREATOR_BYPASS_CODES,
    FolderAccessLevel,
    PermissionClass,
    PermissionCode,
    classify,
    code_value,
)


class Decision(str, Enum):
    """Outcome of a permission check."""
    ALLOW = "ALLOW"
    DENY = "DENY"


class Outcome(str, Enum):
    """Cell value of the decision table."""
    RBAC = "RBAC"      # tenant RBAC result stands
    ALLOW = "ALLOW"
    DENY = "DENY"


DECISION_TABLE: Mapping[Tuple[PermissionClass, Optional[FolderAccessLevel]], Outcome] = MappingProxyType({
    (PermissionClass.READ, None): Outcome.RBAC,
    (PermissionClass.READ, FolderAccessLevel.READ): Outcome.ALLOW,
    (PermissionClass.READ, FolderAccessLevel.WRITE): Outcome.ALLOW,
    (PermissionClass.WRITE, None): Outcome.RBAC,
    (PermissionClass.WRITE, FolderAccessLevel.READ): Outcome.DENY,
    (PermissionClass.WRITE, FolderAccessLevel.WRITE): Outcome.ALLOW,
    (PermissionClass.GATED, None): Outcome.RBAC,
    (PermissionClass.GATED, FolderAccessLevel.READ): Outcome.DENY,
    (PermissionClass.GATED, FolderAccessLevel.WRITE): Outcome.RBAC,
    (PermissionClass.ADMINISTRATIVE, None): Outcome.RBAC,
})

CREATOR_BYPASS_STATUSES = frozenset({"DRAFT", "SUBMITTED"})


@dataclass(frozen=True)
class PermissionDecision:
    """Decision plus a short machine-oriented reason (used for auditing)."""
    decision: Decision
    reason: str
    permission_code: str
    folder_level: Optional[FolderAccessLevel] = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


class FolderAcl:
    """Immutable snapshot of folder overrides: folder id -> role id -> level.

    Duplicate entries for the same (folder, role) keep the stronger level.
    """

    def __init__(self, entries: Iterable[Tuple[UUID, UUID, FolderAccessLevel]] = ()):
        grouped: Dict[UUID, Dict[UUID, FolderAccessLevel]] = {}
        for folder_id, role_id, level in entries:
            level = FolderAccessLevel(level)
            roles = grouped.setdefault(folder_id, {})
            current = roles.get(role_id)
            if current is None or level.rank > current.rank:
                roles[role_id] = level
        self._entries = MappingProxyType(
            {folder_id: MappingProxyType(roles) for folder_id, roles in grouped.items()}
        )

    @classmethod
    def empty(cls) -> "FolderAcl":
        return cls()

    def effective_level(
        self, folder_id: UUID, role_ids: Iterable[UUID]
    ) -> Optional[FolderAccessLevel]:
        """Strongest override held by any of the given roles, or None."""
        overrides = self._entries.get(folder_id)
        if not overrides:
            return None
        levels = [overrides[role_id] for role_id in role_ids if role_id in overrides]
        if not levels:
            return None
        return max(levels, key=lambda level: level.rank)


class PermissionResolver:
    """Answers "may identity I exercise permission P, optionally in folder F?"."""

    def __init__(self, folder_acl: Optional[FolderAcl] = None):
        self.folder_acl = folder_acl or FolderAcl.empty()

    def resolve(
        self,
        identity: IdentityContext,
        permission_code: Union[PermissionCode, str],
        folder_id: Optional[UUID] = None,
        is_creator: bool = False,
        document_status=None,
    ) -> Decision:
        """Return ALLOW or DENY. See evaluate() for the arguments."""
        return self.evaluate(
            identity,
            permission_code,
            folder_id=folder_id,
            is_creator=is_creator,
            document_status=document_status,
        ).decision

    def evaluate(
        self,
        identity: IdentityContext,
        permission_code: Union[PermissionCode, str],
        folder_id: Optional[UUID] = None,
        is_creator: bool = False,
        document_status=None,
    ) -> PermissionDecision:
        """Evaluate a permission check and explain the outcome.

        Args:
            identity: Caller snapshot
            permission_code: Required capability
            folder_id: Folder the target document lives in (None = tenant-wide)
            is_creator: Caller created the target document
            document_status: Stored status of the target document, needed
                for the creator bypass

        Returns:
            PermissionDecision: Decision with reason

        Raises:
            InvalidIdentityError: If the identity snapshot is malformed
        """
        identity.validate()
        code = code_value(permission_code)
        rbac_granted = identity.has_permission(code)
        permission_class = classify(code)

        level = None
        if folder_id is not None and permission_class is not PermissionClass.ADMINISTRATIVE:
            level = self.folder_acl.effective_level(folder_id, identity.role_ids)

        outcome = DECISION_TABLE[(permission_class, level)]
        if outcome is Outcome.RBAC:
            decision = Decision.ALLOW if rbac_granted else Decision.DENY
            reason = "rbac_grant" if rbac_granted else "rbac_missing"
        elif outcome is Outcome.ALLOW:
            decision = Decision.ALLOW
            reason = f"folder_{level.value.lower()}_override"
        else:
            decision = Decision.DENY
            reason = f"folder_{level.value.lower()}_restricts_{permission_class.value.lower()}"

        if decision is Decision.DENY and self._creator_bypass_applies(
            code, rbac_granted, is_creator, document_status
        ):
            decision = Decision.ALLOW
            reason = "creator_bypass"

        return PermissionDecision(
            decision=decision,
            reason=reason,
            permission_code=code,
            folder_level=level,
        )

    @staticmethod
    def _creator_bypass_applies(code, rbac_granted, is_creator, document_status) -> bool:
        if not (is_creator and rbac_granted) or code not in CREATOR_BYPASS_CODES:
            return False
        if document_status is None:
            return False
        status = document_status.value if isinstance(document_status, Enum) else str(document_status)
        return status in CREATOR_BYPASS_STATUSES
