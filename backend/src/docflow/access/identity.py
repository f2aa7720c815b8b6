"""Identity context - the authenticated caller snapshot.

The snapshot is built once per authentication by the identity loader (or by
an external authentication collaborator) and passed explicitly to every
permission check. Role and permission changes take effect on the next
authentication, never on a live snapshot.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Union
from uuid import UUID

from ..errors import InvalidIdentityError
from .permissions import PermissionCode, code_value


@dataclass(frozen=True)
class IdentityContext:
    """Immutable caller descriptor.

    Attributes:
        user_id: Authenticated user
        tenant_id: Tenant the user belongs to
        role_ids: Ids of the roles assigned to the user
        permissions: Flattened permission codes granted by those roles
        mfa_active: Whether the session was established with MFA
    """
    user_id: Optional[UUID]
    tenant_id: Optional[UUID]
    role_ids: FrozenSet[UUID] = field(default_factory=frozenset)
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    mfa_active: bool = False

    def __post_init__(self):
        object.__setattr__(self, "role_ids", frozenset(self.role_ids))
        object.__setattr__(
            self, "permissions", frozenset(code_value(p) for p in self.permissions)
        )

    @classmethod
    def create(
        cls,
        user_id: UUID,
        tenant_id: UUID,
        role_ids: Iterable[UUID] = (),
        permissions: Iterable[Union[PermissionCode, str]] = (),
        mfa_active: bool = False,
    ) -> "IdentityContext":
        """Build a snapshot from arbitrary iterables."""
        return cls(
            user_id=user_id,
            tenant_id=tenant_id,
            role_ids=frozenset(role_ids),
            permissions=frozenset(code_value(p) for p in permissions),
            mfa_active=mfa_active,
        )

    def validate(self) -> None:
        """Fail fast on a malformed snapshot.

        Raises:
            InvalidIdentityError: If the tenant id or user id is missing
        """
        if self.tenant_id is None:
            raise InvalidIdentityError("Identity context has no tenant id")
        if self.user_id is None:
            raise InvalidIdentityError("Identity context is not authenticated")

    def has_permission(self, code: Union[PermissionCode, str]) -> bool:
        """Check the tenant-level RBAC grant for a code."""
        return code_value(code) in self.permissions
