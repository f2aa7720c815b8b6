"""Authorization guard - resolver plus denial auditing.

The guard loads the folder ACL snapshot for the target, asks the pure
PermissionResolver for a decision, counts the outcome and, on DENY, writes
one PERMISSION_DENIED audit record in its own transaction before raising
AuthorizationDenied. A failed denial audit surfaces as InfrastructureError.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from ..audit.ports import AuditEmitter
from ..audit.schemas import AuditAction, AuditEntityType, AuditMetadata
from ..errors import AuthorizationDenied
from ..observability.metrics import record_authorization_decision
from ..persistence.ports import DocumentGateway, DocumentRecord
from .identity import IdentityContext
from .permissions import PermissionCode, code_value
from .resolver import FolderAcl, PermissionDecision, PermissionResolver

logger = logging.getLogger(__name__)


class AccessGuard:
    """Enforces permission checks for the document services."""

    def __init__(self, gateway: DocumentGateway, audit: AuditEmitter):
        self.gateway = gateway
        self.audit = audit

    def check(
        self,
        identity: IdentityContext,
        permission_code: Union[PermissionCode, str],
        document: Optional[DocumentRecord] = None,
        folder_id: Optional[UUID] = None,
    ) -> PermissionDecision:
        """Evaluate a permission without raising or auditing."""
        identity.validate()
        is_creator = False
        document_status = None
        if document is not None:
            folder_id = document.folder_id
            is_creator = document.created_by_id is not None and document.created_by_id == identity.user_id
            document_status = document.status

        acl = FolderAcl.empty()
        if folder_id is not None:
            acl = self.gateway.load_folder_acl(identity.tenant_id, folder_id)

        return PermissionResolver(acl).evaluate(
            identity,
            permission_code,
            folder_id=folder_id,
            is_creator=is_creator,
            document_status=document_status,
        )

    def authorize(
        self,
        identity: IdentityContext,
        permission_code: Union[PermissionCode, str],
        document: Optional[DocumentRecord] = None,
        folder_id: Optional[UUID] = None,
    ) -> PermissionDecision:
        """Require a permission, auditing and raising on denial.

        Args:
            identity: Caller snapshot
            permission_code: Required capability
            document: Target document, if the check is about one
            folder_id: Target folder when there is no document yet

        Returns:
            PermissionDecision: The ALLOW decision

        Raises:
            InvalidIdentityError: If the identity snapshot is malformed
            AuthorizationDenied: If the resolver denied the permission
            InfrastructureError: If the denial could not be audited
        """
        code = code_value(permission_code)
        decision = self.check(identity, code, document=document, folder_id=folder_id)
        record_authorization_decision(code, decision.decision.value)

        if decision.allowed:
            logger.debug(
                f"Permission {code} granted ({decision.reason})",
                extra={"tenant_id": identity.tenant_id, "user_id": identity.user_id},
            )
            return decision

        logger.info(
            f"Permission {code} denied ({decision.reason})",
            extra={
                "tenant_id": identity.tenant_id,
                "user_id": identity.user_id,
                "permission_code": code,
            },
        )
        entity_type = AuditEntityType.DOCUMENT if document is not None else (
            AuditEntityType.FOLDER if folder_id is not None else AuditEntityType.TENANT
        )
        entity_id = document.id if document is not None else folder_id
        metadata = AuditMetadata(
            permission_code=code,
            decision_reason=decision.reason,
            folder_id=document.folder_id if document is not None else folder_id,
        )
        self.gateway.run_transaction(lambda: self.audit.record(
            tenant_id=identity.tenant_id,
            actor_id=identity.user_id,
            action=AuditAction.PERMISSION_DENIED,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        ))
        raise AuthorizationDenied(code, decision.reason)
