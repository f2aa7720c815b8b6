"""Database loaders for identity snapshots and folder ACLs.

Every query carries an explicit tenant filter; nothing here relies on
session-level tenant scoping.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import InvalidIdentityError
from ..models.folder import FolderPermission
from ..models.user import Permission, Role, RolePermission, User, UserRole
from .identity import IdentityContext
from .resolver import FolderAcl

logger = logging.getLogger(__name__)


def build_identity_context(
    db: Session,
    user_id: Optional[UUID],
    tenant_id: Optional[UUID],
    mfa_active: bool = False,
) -> IdentityContext:
    """Build the caller snapshot for an authenticated user.

    Loads the user's tenant roles and flattens their permission codes. The
    snapshot is not refreshed afterwards; role changes apply to the next
    authentication.

    Args:
        db: Database session
        user_id: Authenticated user id
        tenant_id: Tenant the session was issued for
        mfa_active: Whether the session was established with MFA

    Returns:
        IdentityContext: Immutable caller snapshot

    Raises:
        InvalidIdentityError: If an id is missing, or the user is unknown in
            this tenant or disabled
    """
    if user_id is None or tenant_id is None:
        raise InvalidIdentityError("Identity requires both a user id and a tenant id")

    user = db.execute(
        select(User).where(User.id == user_id, User.tenant_id == tenant_id)
    ).scalar_one_or_none()
    if user is None:
        raise InvalidIdentityError("User is not known in this tenant")
    if user.status != "ACTIVE":
        logger.info(
            "Identity refused for disabled user",
            extra={"tenant_id": tenant_id, "user_id": user_id},
        )
        raise InvalidIdentityError("User account is disabled")

    role_ids = db.execute(
        select(Role.id)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id, Role.tenant_id == tenant_id)
    ).scalars().all()

    codes = []
    if role_ids:
        codes = db.execute(
            select(Permission.code)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id.in_(role_ids))
            .distinct()
        ).scalars().all()

    return IdentityContext.create(
        user_id=user_id,
        tenant_id=tenant_id,
        role_ids=role_ids,
        permissions=codes,
        mfa_active=mfa_active,
    )


def load_folder_acl(db: Session, tenant_id: UUID, folder_id: UUID) -> FolderAcl:
    """Load the ACL overrides of one folder into an immutable snapshot."""
    rows = db.execute(
        select(FolderPermission.folder_id, FolderPermission.role_id, FolderPermission.level)
        .where(
            FolderPermission.tenant_id == tenant_id,
            FolderPermission.folder_id == folder_id,
        )
    ).all()
    return FolderAcl((row.folder_id, row.role_id, row.level) for row in rows)
