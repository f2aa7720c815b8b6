"""Unit tests for the permission resolver decision table.

Tests cover:
- Tenant RBAC without folder overrides
- Folder READ / WRITE overrides per permission class
- Multiple roles on one folder (WRITE beats READ)
- Creator bypass conditions
- Malformed identity snapshots
"""

from uuid import uuid4

import pytest

from docflow.access.identity import IdentityContext
from docflow.access.permissions import FolderAccessLevel, PermissionClass, PermissionCode
from docflow.access.resolver import (
    DECISION_TABLE,
    Decision,
    FolderAcl,
    PermissionResolver,
)
from docflow.errors import InvalidIdentityError
from docflow.workflow.status import DocumentStatus

pytestmark = pytest.mark.unit

FOLDER = uuid4()
ROLE_A = uuid4()
ROLE_B = uuid4()


def make_identity(*codes, role_ids=(ROLE_A,)):
    return IdentityContext.create(
        user_id=uuid4(), tenant_id=uuid4(), role_ids=role_ids, permissions=codes
    )


def resolver_with(*entries):
    return PermissionResolver(FolderAcl(entries))


class TestRbacOnly:
    """Without folder overrides the tenant RBAC grant decides."""

    def test_granted_code_is_allowed(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_EDIT)
        decision = PermissionResolver().evaluate(identity, PermissionCode.DMS_DOCUMENT_EDIT)

        assert decision.decision is Decision.ALLOW
        assert decision.reason == "rbac_grant"

    def test_missing_code_is_denied(self):
        identity = make_identity(PermissionCode.DMS_VIEW)
        decision = PermissionResolver().evaluate(identity, PermissionCode.DMS_DOCUMENT_EDIT)

        assert decision.decision is Decision.DENY
        assert decision.reason == "rbac_missing"

    def test_folder_without_overrides_falls_back_to_rbac(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_APPROVE)
        resolver = resolver_with((uuid4(), ROLE_A, FolderAccessLevel.READ))

        assert resolver.resolve(identity, "DMS_DOCUMENT_APPROVE", folder_id=FOLDER) is Decision.ALLOW

    def test_override_for_foreign_role_is_ignored(self):
        identity = make_identity(role_ids=(ROLE_A,))
        resolver = resolver_with((FOLDER, ROLE_B, FolderAccessLevel.WRITE))

        assert resolver.resolve(identity, PermissionCode.DMS_DOCUMENT_EDIT, folder_id=FOLDER) is Decision.DENY

    def test_resolve_returns_bare_decision(self):
        identity = make_identity(PermissionCode.DMS_VIEW)
        assert PermissionResolver().resolve(identity, PermissionCode.DMS_VIEW) is Decision.ALLOW


class TestFolderOverrides:
    """Folder overrides adjust RBAC according to the permission class."""

    def test_read_override_allows_read_class_without_rbac(self):
        identity = make_identity()
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.READ))

        decision = resolver.evaluate(identity, PermissionCode.DMS_DOCUMENT_READ, folder_id=FOLDER)

        assert decision.allowed
        assert decision.reason == "folder_read_override"

    def test_read_override_denies_write_class_despite_rbac(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_EDIT)
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.READ))

        decision = resolver.evaluate(identity, PermissionCode.DMS_DOCUMENT_EDIT, folder_id=FOLDER)

        assert decision.decision is Decision.DENY
        assert decision.reason == "folder_read_restricts_write"
        assert decision.folder_level is FolderAccessLevel.READ

    def test_write_override_allows_write_class_without_rbac(self):
        identity = make_identity()
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.WRITE))

        assert resolver.resolve(identity, PermissionCode.DMS_DOCUMENT_UPLOAD, folder_id=FOLDER) is Decision.ALLOW

    def test_write_override_does_not_grant_gated_capability(self):
        identity = make_identity()
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.WRITE))

        assert resolver.resolve(identity, PermissionCode.DMS_DOCUMENT_APPROVE, folder_id=FOLDER) is Decision.DENY

    def test_write_override_keeps_gated_rbac_grant(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_APPROVE)
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.WRITE))

        assert resolver.resolve(identity, PermissionCode.DMS_DOCUMENT_APPROVE, folder_id=FOLDER) is Decision.ALLOW

    def test_read_override_denies_gated_capability_despite_rbac(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_CREATE)
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.READ))

        assert resolver.resolve(identity, PermissionCode.DMS_DOCUMENT_CREATE, folder_id=FOLDER) is Decision.DENY

    @pytest.mark.parametrize("code", ["ROLE_ASSIGN", "ADMIN_ACCESS", "AUDIT_VIEW", "SOMETHING_NEW"])
    def test_administrative_codes_ignore_folder_write(self, code):
        identity = make_identity()
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.WRITE))

        assert resolver.resolve(identity, code, folder_id=FOLDER) is Decision.DENY

    def test_administrative_code_granted_by_rbac_ignores_folder_read(self):
        identity = make_identity(PermissionCode.AUDIT_VIEW)
        resolver = resolver_with((FOLDER, ROLE_A, FolderAccessLevel.READ))

        assert resolver.resolve(identity, PermissionCode.AUDIT_VIEW, folder_id=FOLDER) is Decision.ALLOW

    def test_write_beats_read_across_roles(self):
        identity = make_identity(role_ids=(ROLE_A, ROLE_B))
        resolver = resolver_with(
            (FOLDER, ROLE_A, FolderAccessLevel.READ),
            (FOLDER, ROLE_B, FolderAccessLevel.WRITE),
        )

        decision = resolver.evaluate(identity, PermissionCode.DMS_DOCUMENT_EDIT, folder_id=FOLDER)

        assert decision.allowed
        assert decision.folder_level is FolderAccessLevel.WRITE

    def test_duplicate_entries_keep_strongest_level(self):
        acl = FolderAcl([
            (FOLDER, ROLE_A, FolderAccessLevel.WRITE),
            (FOLDER, ROLE_A, FolderAccessLevel.READ),
        ])

        assert acl.effective_level(FOLDER, [ROLE_A]) is FolderAccessLevel.WRITE

    def test_decision_table_is_complete(self):
        for permission_class in PermissionClass:
            assert (permission_class, None) in DECISION_TABLE
            if permission_class is not PermissionClass.ADMINISTRATIVE:
                for level in FolderAccessLevel:
                    assert (permission_class, level) in DECISION_TABLE


class TestCreatorBypass:
    """The creator keeps edit-class access to an in-progress document."""

    def restricted(self):
        return resolver_with((FOLDER, ROLE_A, FolderAccessLevel.READ))

    @pytest.mark.parametrize("status", [DocumentStatus.DRAFT, DocumentStatus.SUBMITTED])
    def test_creator_overrides_restrictive_folder(self, status):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_EDIT)

        decision = self.restricted().evaluate(
            identity,
            PermissionCode.DMS_DOCUMENT_EDIT,
            folder_id=FOLDER,
            is_creator=True,
            document_status=status,
        )

        assert decision.allowed
        assert decision.reason == "creator_bypass"

    def test_no_bypass_once_approved(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_EDIT)

        decision = self.restricted().resolve(
            identity,
            PermissionCode.DMS_DOCUMENT_EDIT,
            folder_id=FOLDER,
            is_creator=True,
            document_status=DocumentStatus.APPROVED,
        )

        assert decision is Decision.DENY

    def test_no_bypass_without_rbac_grant(self):
        identity = make_identity()

        decision = self.restricted().resolve(
            identity,
            PermissionCode.DMS_DOCUMENT_WITHDRAW,
            folder_id=FOLDER,
            is_creator=True,
            document_status="SUBMITTED",
        )

        assert decision is Decision.DENY

    def test_no_bypass_for_non_creator(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_UPLOAD)

        decision = self.restricted().resolve(
            identity,
            PermissionCode.DMS_DOCUMENT_UPLOAD,
            folder_id=FOLDER,
            is_creator=False,
            document_status=DocumentStatus.DRAFT,
        )

        assert decision is Decision.DENY

    def test_no_bypass_for_submit(self):
        identity = make_identity(PermissionCode.DMS_DOCUMENT_SUBMIT)

        decision = self.restricted().resolve(
            identity,
            PermissionCode.DMS_DOCUMENT_SUBMIT,
            folder_id=FOLDER,
            is_creator=True,
            document_status=DocumentStatus.DRAFT,
        )

        assert decision is Decision.DENY


class TestMalformedIdentity:
    """Missing identity fields are configuration errors, not denials."""

    def test_missing_tenant_raises(self):
        identity = IdentityContext(user_id=uuid4(), tenant_id=None)

        with pytest.raises(InvalidIdentityError):
            PermissionResolver().resolve(identity, PermissionCode.DMS_VIEW)

    def test_missing_user_raises(self):
        identity = IdentityContext(user_id=None, tenant_id=uuid4(), permissions={"DMS_VIEW"})

        with pytest.raises(InvalidIdentityError):
            PermissionResolver().evaluate(identity, PermissionCode.DMS_VIEW)
