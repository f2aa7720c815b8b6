"""Integration tests for the workflow engine on a real database.

Tests cover:
- Legal transitions, version advance, history and audit
- Illegal transitions and expired documents
- Reject comment rule
- Audit failure aborting the transition
- Two writers racing on the same document version
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from docflow.audit.ports import AuditEmitter
from docflow.audit.service import SqlAuditEmitter
from docflow.errors import (
    DomainViolationError,
    InfrastructureError,
    InvalidTransitionError,
    NotFoundError,
    StateMismatchError,
)
from docflow.models import Document, DocumentSequence, WorkflowHistory
from docflow.persistence.sqlalchemy_gateway import SqlAlchemyDocumentGateway
from docflow.workflow.engine import transition_document_status
from docflow.workflow.status import DocumentStatus

from factories import audit_entries, make_document, past

pytestmark = pytest.mark.integration


def reload(db, document):
    db.expire_all()
    return db.get(Document, document.id)


class FailingAuditEmitter(AuditEmitter):
    def record(self, tenant_id, actor_id, action, entity_type, entity_id, metadata=None, now=None):
        raise InfrastructureError("audit store unavailable")


class TestLegalTransitions:

    def test_submit_draft(self, db_session, gateway, audit, tenant, author, draft_document):
        summary = transition_document_status(
            gateway, audit, draft_document.id, tenant.id, "submit", author.id
        )

        assert summary.status is DocumentStatus.SUBMITTED
        assert summary.from_status is DocumentStatus.DRAFT
        assert summary.version == 2

        stored = reload(db_session, draft_document)
        assert stored.status == DocumentStatus.SUBMITTED
        assert stored.version == 2
        assert stored.updated_by_id == author.id

    def test_transition_writes_one_audit_record(self, db_session, gateway, audit, tenant, author, draft_document):
        transition_document_status(gateway, audit, draft_document.id, tenant.id, "submit", author.id)

        entries = audit_entries(db_session)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == "DMS.SUBMIT"
        assert entry.entity_type == "DOCUMENT"
        assert entry.entity_id == draft_document.id
        assert entry.actor_id == author.id
        assert entry.metadata_json["from_status"] == "DRAFT"
        assert entry.metadata_json["to_status"] == "SUBMITTED"
        assert entry.metadata_json["workflow_action"] == "submit"
        assert entry.metadata_json["schema_version"] == 1

    def test_transition_writes_history(self, db_session, gateway, audit, tenant, approver, submitted_document):
        transition_document_status(
            gateway, audit, submitted_document.id, tenant.id, "reject", approver.id,
            comment="Section 4 is missing",
        )

        history = db_session.execute(select(WorkflowHistory)).scalars().all()
        assert len(history) == 1
        assert history[0].action == "reject"
        assert history[0].from_status == "SUBMITTED"
        assert history[0].to_status == "REJECTED"
        assert history[0].comment == "Section 4 is missing"

    def test_full_lifecycle_advances_version_each_step(self, db_session, gateway, audit, tenant, author, approver, draft_document):
        steps = [("submit", author), ("approve", approver), ("obsolete", approver)]
        versions = []
        for action, actor in steps:
            versions.append(
                transition_document_status(gateway, audit, draft_document.id, tenant.id, action, actor.id).version
            )

        assert versions == [2, 3, 4]
        assert reload(db_session, draft_document).status == DocumentStatus.OBSOLETE
        assert [e.action for e in audit_entries(db_session)] == ["DMS.SUBMIT", "DMS.APPROVE", "DMS.OBSOLETE"]

    def test_withdraw_returns_to_draft(self, db_session, gateway, audit, tenant, author, submitted_document):
        summary = transition_document_status(
            gateway, audit, submitted_document.id, tenant.id, "withdraw", author.id
        )

        assert summary.status is DocumentStatus.DRAFT


class TestRefusedTransitions:

    def test_wrong_stored_status(self, db_session, gateway, audit, tenant, approver, draft_document):
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition_document_status(gateway, audit, draft_document.id, tenant.id, "approve", approver.id)

        assert exc_info.value.actual_status == "DRAFT"
        assert exc_info.value.expected_status == "SUBMITTED"
        stored = reload(db_session, draft_document)
        assert stored.status == DocumentStatus.DRAFT
        assert stored.version == 1
        assert audit_entries(db_session) == []

    def test_unknown_action(self, gateway, audit, tenant, author, draft_document):
        with pytest.raises(InvalidTransitionError):
            transition_document_status(gateway, audit, draft_document.id, tenant.id, "publish", author.id)

    def test_missing_document(self, gateway, audit, tenant, author):
        with pytest.raises(NotFoundError):
            transition_document_status(gateway, audit, uuid4(), tenant.id, "submit", author.id)

    def test_obsolete_expired_document(self, db_session, gateway, audit, tenant, approver, expired_document):
        with pytest.raises(DomainViolationError, match="expired"):
            transition_document_status(
                gateway, audit, expired_document.id, tenant.id, "obsolete", approver.id
            )

        assert reload(db_session, expired_document).status == DocumentStatus.APPROVED
        assert audit_entries(db_session) == []

    def test_invalid_transition_wins_over_expiry(self, db_session, gateway, audit, tenant, author, folder):
        document = make_document(
            db_session, folder, author, status=DocumentStatus.APPROVED, expiry_date=past()
        )

        with pytest.raises(InvalidTransitionError):
            transition_document_status(gateway, audit, document.id, tenant.id, "submit", author.id)

    @pytest.mark.parametrize("comment", [None, "", "   "])
    def test_reject_requires_comment(self, db_session, gateway, audit, tenant, approver, submitted_document, comment):
        with pytest.raises(DomainViolationError, match="comment"):
            transition_document_status(
                gateway, audit, submitted_document.id, tenant.id, "reject", approver.id, comment=comment
            )

        assert reload(db_session, submitted_document).status == DocumentStatus.SUBMITTED

    def test_reject_comment_rule_can_be_disabled(self, gateway, audit, tenant, approver, submitted_document):
        summary = transition_document_status(
            gateway, audit, submitted_document.id, tenant.id, "reject", approver.id,
            require_comment_on_reject=False,
        )

        assert summary.status is DocumentStatus.REJECTED


class TestAtomicity:

    def test_audit_failure_aborts_transition(self, db_session, gateway, tenant, author, draft_document):
        with pytest.raises(InfrastructureError):
            transition_document_status(
                gateway, FailingAuditEmitter(), draft_document.id, tenant.id, "submit", author.id
            )

        stored = reload(db_session, draft_document)
        assert stored.status == DocumentStatus.DRAFT
        assert stored.version == 1
        assert db_session.execute(select(WorkflowHistory)).scalars().all() == []

    def test_stale_version_updates_nothing(self, db_session, gateway, tenant, author, draft_document):
        updated = gateway.conditional_update_status(
            draft_document.id, tenant.id, 7, DocumentStatus.SUBMITTED, author.id, datetime.now(timezone.utc)
        )

        assert updated is False
        assert reload(db_session, draft_document).status == DocumentStatus.DRAFT


class RacingGateway(SqlAlchemyDocumentGateway):
    """Lets a competing writer commit right before the guarded write."""

    def __init__(self, db, competitor, races=1):
        super().__init__(db)
        self.competitor = competitor
        self.races = races
        self.attempts = 0

    def conditional_update_status(self, *args, **kwargs):
        self.attempts += 1
        if self.attempts <= self.races:
            self.competitor()
        return super().conditional_update_status(*args, **kwargs)


class TestConcurrentWriters:

    def test_loser_gets_state_mismatch_and_one_audit_survives(
        self, db_session, session_factory, tenant, approver, submitted_document
    ):
        def competing_approval():
            other = session_factory()
            try:
                transition_document_status(
                    SqlAlchemyDocumentGateway(other),
                    SqlAuditEmitter(other),
                    submitted_document.id,
                    tenant.id,
                    "approve",
                    approver.id,
                )
            finally:
                other.close()

        gateway = RacingGateway(db_session, competing_approval)

        with pytest.raises(StateMismatchError) as exc_info:
            transition_document_status(
                gateway,
                SqlAuditEmitter(db_session),
                submitted_document.id,
                tenant.id,
                "reject",
                approver.id,
                comment="Too late",
            )

        assert exc_info.value.retryable is True
        stored = reload(db_session, submitted_document)
        assert stored.status == DocumentStatus.APPROVED
        assert stored.version == 2
        assert [e.action for e in audit_entries(db_session)] == ["DMS.APPROVE"]
        assert len(db_session.execute(select(WorkflowHistory)).scalars().all()) == 1


class TestTimestamps:

    def test_status_history_and_audit_share_the_transition_instant(
        self, db_session, gateway, audit, tenant, author, draft_document
    ):
        now = datetime(2026, 5, 4, 12, 30, tzinfo=timezone.utc)

        transition_document_status(
            gateway, audit, draft_document.id, tenant.id, "submit", author.id, now=now
        )

        stored = reload(db_session, draft_document)
        history = db_session.execute(select(WorkflowHistory)).scalar_one()
        (entry,) = audit_entries(db_session, "DMS.SUBMIT")
        instants = {
            value.replace(tzinfo=None)
            for value in (stored.updated_at, history.created_at, entry.created_at)
        }
        assert instants == {now.replace(tzinfo=None)}


class TestDocumentNumbering:

    def test_first_number_of_a_year_taken_by_another_session(self, db_session, session_factory, gateway, tenant):
        other = session_factory()
        try:
            assert SqlAlchemyDocumentGateway(other).next_document_number(tenant.id, "DOC", 2026) == "DOC-2026-00001"
            other.commit()
        finally:
            other.close()

        number = gateway.next_document_number(tenant.id, "DOC", 2026)
        db_session.commit()

        assert number == "DOC-2026-00002"
        rows = db_session.execute(select(DocumentSequence)).scalars().all()
        assert [(row.year, row.current) for row in rows] == [(2026, 2)]

    def test_sequences_are_per_tenant_and_year(self, db_session, gateway, tenant, other_tenant):
        numbers = [
            gateway.next_document_number(tenant.id, "DOC", 2026),
            gateway.next_document_number(tenant.id, "DOC", 2026),
            gateway.next_document_number(other_tenant.id, "DOC", 2026),
            gateway.next_document_number(tenant.id, "DOC", 2027),
        ]
        db_session.commit()

        assert numbers == ["DOC-2026-00001", "DOC-2026-00002", "DOC-2026-00001", "DOC-2027-00001"]
