"""Security tests for tenant isolation and privilege boundaries

Tests cover:
- Cross-tenant document access reported as not found
- Folder overrides of another tenant never loaded
- Administrative and gated capabilities never unlocked by folder WRITE
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from docflow.access.guard import AccessGuard
from docflow.access.loaders import load_folder_acl
from docflow.access.permissions import FolderAccessLevel, PermissionCode
from docflow.config import Settings
from docflow.documents.service import DocumentWorkflowService
from docflow.errors import AuthorizationDenied, NotFoundError
from docflow.models import Document, Folder, FolderPermission
from docflow.workflow.engine import transition_document_status
from docflow.workflow.status import DocumentStatus

from factories import (
    AUTHOR_CODES,
    audit_entries,
    grant_folder,
    identity_for,
    make_role,
    make_user,
)

pytestmark = pytest.mark.security


@pytest.fixture
def intruder(db_session: Session, other_tenant, permission_catalogue):
    """Fully privileged author in another tenant."""
    role = make_role(db_session, other_tenant, "Author", AUTHOR_CODES)
    return make_user(db_session, other_tenant, "intruder@globex.test", [role])


class TestCrossTenantDocuments:

    def test_engine_reports_foreign_document_as_missing(
        self, db_session, gateway, audit, other_tenant, intruder, draft_document
    ):
        with pytest.raises(NotFoundError):
            transition_document_status(
                gateway, audit, draft_document.id, other_tenant.id, "submit", intruder.id
            )

        db_session.expire_all()
        stored = db_session.get(Document, draft_document.id)
        assert stored.status == DocumentStatus.DRAFT
        assert stored.version == 1

    def test_service_reports_foreign_document_as_missing(self, db_session, intruder, draft_document):
        service = DocumentWorkflowService(db_session, Settings(DATABASE_URL="sqlite://"))

        with pytest.raises(NotFoundError):
            service.execute_action(identity_for(db_session, intruder), draft_document.id, "submit")
        with pytest.raises(NotFoundError):
            service.create_revision(identity_for(db_session, intruder), draft_document.id)

        assert audit_entries(db_session) == []

    def test_gateway_never_returns_foreign_rows(self, gateway, other_tenant, draft_document, folder):
        assert gateway.find_document(draft_document.id, other_tenant.id) is None
        assert gateway.find_folder(folder.id, other_tenant.id) is None


class TestFolderOverrideBoundaries:

    def test_foreign_tenant_acl_rows_are_ignored(self, db_session, tenant, other_tenant, folder, reader_role):
        db_session.add(FolderPermission(
            tenant_id=other_tenant.id,
            folder_id=folder.id,
            role_id=reader_role.id,
            level=FolderAccessLevel.WRITE,
        ))
        db_session.commit()

        acl = load_folder_acl(db_session, tenant.id, folder.id)

        assert acl.effective_level(folder.id, [reader_role.id]) is None

    @pytest.mark.parametrize("code", [
        PermissionCode.ROLE_ASSIGN,
        PermissionCode.USER_DELETE,
        PermissionCode.ADMIN_ACCESS,
        PermissionCode.DMS_AUDIT_EXPORT,
        PermissionCode.DMS_DOCUMENT_APPROVE,
        PermissionCode.DMS_DOCUMENT_OBSOLETE,
    ])
    def test_folder_write_does_not_escalate(self, db_session, gateway, audit, tenant, reader_role, folder, code):
        grant_folder(db_session, folder, reader_role, FolderAccessLevel.WRITE)
        user = make_user(db_session, tenant, "writer@acme.test", [reader_role])

        with pytest.raises(AuthorizationDenied):
            AccessGuard(gateway, audit).authorize(identity_for(db_session, user), code, folder_id=folder.id)

    def test_creator_cannot_approve_own_document(self, db_session, author, submitted_document):
        service = DocumentWorkflowService(db_session, Settings(DATABASE_URL="sqlite://"))

        with pytest.raises(AuthorizationDenied):
            service.execute_action(identity_for(db_session, author), submitted_document.id, "approve")


class TestExplicitTenantScoping:

    def test_session_info_never_stamps_tenant_id(self, db_session, tenant):
        """Rows must name their tenant; nothing fills it in from the session."""
        db_session.info["tenant_id"] = tenant.id
        db_session.add(Folder(name="Unscoped"))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()
