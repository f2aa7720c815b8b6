"""Document workflow service - the facade used by the API layer.

Each call loads the facts the permission check needs, authorizes through the
AccessGuard and then runs the domain operation. Operations that end in a
compare-and-swap write are retried a bounded number of times when a
concurrent writer wins; every attempt re-reads the document.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ..access.guard import AccessGuard
from ..access.identity import IdentityContext
from ..access.permissions import PermissionCode
from ..audit.service import SqlAuditEmitter
from ..config import Settings, get_settings
from ..errors import NotFoundError, StateMismatchError
from ..persistence.ports import AcknowledgementRecord, DocumentRecord, VersionRecord
from ..persistence.sqlalchemy_gateway import SqlAlchemyDocumentGateway
from ..workflow.engine import UpdatedDocumentSummary, transition_document_status
from ..workflow.status import EffectiveStatus, get_effective_document_status
from ..workflow.transitions import get_transition
from . import acknowledgements, creation, revision, versions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentWorkflowService:
    """Authorized document operations for one request.

    Args:
        db: Request-scoped session, shared by the gateway and the audit emitter
        settings: Application settings (defaults to get_settings())
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.gateway = SqlAlchemyDocumentGateway(db)
        self.audit = SqlAuditEmitter(db)
        self.guard = AccessGuard(self.gateway, self.audit)

    def _load_document(self, identity: IdentityContext, document_id: UUID) -> DocumentRecord:
        document = self.gateway.find_document(document_id, identity.tenant_id)
        if document is None:
            raise NotFoundError("document", document_id)
        return document

    def _with_retry(self, operation: str, attempt: Callable[[], T]) -> T:
        max_attempts = max(1, self.settings.WORKFLOW_MAX_RETRIES)
        number = 1
        while True:
            try:
                return attempt()
            except StateMismatchError:
                if number >= max_attempts:
                    logger.info(f"{operation}: giving up after {number} conflicting attempts")
                    raise
                logger.info(f"{operation}: concurrent update detected, retrying ({number}/{max_attempts})")
                number += 1

    def execute_action(
        self,
        identity: IdentityContext,
        document_id: UUID,
        action: str,
        comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UpdatedDocumentSummary:
        """Authorize and apply a workflow action (submit, approve, ...)."""
        identity.validate()
        transition = get_transition(action)

        def attempt() -> UpdatedDocumentSummary:
            document = self._load_document(identity, document_id)
            self.guard.authorize(identity, transition.permission, document=document)
            return transition_document_status(
                self.gateway,
                self.audit,
                document_id,
                identity.tenant_id,
                transition.action,
                identity.user_id,
                comment=comment,
                now=now,
                require_comment_on_reject=self.settings.REJECT_REQUIRES_COMMENT,
            )

        return self._with_retry(f"workflow {transition.action.value}", attempt)

    def create_document(
        self,
        identity: IdentityContext,
        folder_id: UUID,
        title: str,
        description: Optional[str] = None,
        expiry_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> DocumentRecord:
        identity.validate()
        if self.gateway.find_folder(folder_id, identity.tenant_id) is None:
            raise NotFoundError("folder", folder_id)
        self.guard.authorize(identity, PermissionCode.DMS_DOCUMENT_CREATE, folder_id=folder_id)
        return creation.create_document(
            self.gateway,
            self.audit,
            identity,
            folder_id,
            title,
            description=description,
            expiry_date=expiry_date,
            number_prefix=self.settings.DOCUMENT_NUMBER_PREFIX,
            now=now,
        )

    def register_version(
        self,
        identity: IdentityContext,
        document_id: UUID,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        storage_key: str,
        now: Optional[datetime] = None,
    ) -> VersionRecord:
        identity.validate()

        def attempt() -> VersionRecord:
            document = self._load_document(identity, document_id)
            self.guard.authorize(identity, PermissionCode.DMS_DOCUMENT_UPLOAD, document=document)
            return versions.register_version(
                self.gateway,
                self.audit,
                identity,
                document_id,
                file_name=file_name,
                mime_type=mime_type,
                size_bytes=size_bytes,
                storage_key=storage_key,
                now=now,
                max_size_bytes=self.settings.MAX_VERSION_SIZE_BYTES,
            )

        return self._with_retry("register version", attempt)

    def acknowledge_document(
        self,
        identity: IdentityContext,
        document_id: UUID,
        now: Optional[datetime] = None,
    ) -> AcknowledgementRecord:
        identity.validate()
        document = self._load_document(identity, document_id)
        self.guard.authorize(identity, PermissionCode.DMS_VIEW, document=document)
        return acknowledgements.acknowledge_document(
            self.gateway, self.audit, identity, document_id, now=now
        )

    def create_revision(
        self,
        identity: IdentityContext,
        document_id: UUID,
        now: Optional[datetime] = None,
    ) -> DocumentRecord:
        identity.validate()

        def attempt() -> DocumentRecord:
            document = self._load_document(identity, document_id)
            self.guard.authorize(identity, PermissionCode.DMS_DOCUMENT_CREATE, document=document)
            return revision.create_revision(
                self.gateway,
                self.audit,
                identity,
                document_id,
                number_prefix=self.settings.DOCUMENT_NUMBER_PREFIX,
                now=now,
            )

        return self._with_retry("create revision", attempt)

    def effective_status(
        self,
        identity: IdentityContext,
        document_id: UUID,
        now: Optional[datetime] = None,
    ) -> Tuple[DocumentRecord, EffectiveStatus]:
        """Read a document together with its effective status."""
        identity.validate()
        document = self._load_document(identity, document_id)
        self.guard.authorize(identity, PermissionCode.DMS_DOCUMENT_READ, document=document)
        return document, get_effective_document_status(document, now=now)
