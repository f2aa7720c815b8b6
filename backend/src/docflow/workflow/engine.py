"""Workflow engine - guarded document status transitions.

A transition runs inside one gateway transaction:

    1. Resolve the action in the transition table.
    2. Re-read the document (tenant-scoped).
    3. Check the stored status against the table's "from" status.
    4. Refuse to leave APPROVED once the document has expired.
    5. Refuse a rejection without a comment (configurable).
    6. Compare-and-swap the status on the version counter.
    7. Append workflow history and exactly one audit record.

Authorization happens before the engine is called (see
documents.service); the engine itself only enforces the state machine.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import UUID

from ..audit.ports import AuditEmitter
from ..audit.schemas import AuditEntityType, AuditMetadata
from ..errors import (
    DocflowError,
    DomainViolationError,
    InfrastructureError,
    InvalidTransitionError,
    NotFoundError,
    StateMismatchError,
)
from ..observability.metrics import record_workflow_transition
from ..persistence.ports import DocumentGateway
from .status import DocumentStatus, EffectiveStatus, get_effective_document_status
from .transitions import WorkflowAction, get_transition

logger = logging.getLogger(__name__)

_OUTCOMES = {
    InvalidTransitionError: "invalid_transition",
    StateMismatchError: "state_mismatch",
    DomainViolationError: "domain_violation",
    NotFoundError: "not_found",
    InfrastructureError: "error",
}


@dataclass(frozen=True)
class UpdatedDocumentSummary:
    """Result of a successful transition."""
    id: UUID
    tenant_id: UUID
    status: DocumentStatus
    version: int
    from_status: DocumentStatus
    updated_at: datetime


def _outcome_label(exc: DocflowError) -> str:
    for error_type, label in _OUTCOMES.items():
        if isinstance(exc, error_type):
            return label
    return "error"


def transition_document_status(
    gateway: DocumentGateway,
    audit: AuditEmitter,
    document_id: UUID,
    tenant_id: UUID,
    action: Union[WorkflowAction, str],
    actor_id: UUID,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
    require_comment_on_reject: bool = True,
) -> UpdatedDocumentSummary:
    """Apply a workflow action to a document.

    Args:
        gateway: Persistence gateway
        audit: Audit emitter sharing the gateway's transaction
        document_id: Target document
        tenant_id: Caller's tenant (documents of other tenants are not found)
        action: Workflow action name
        actor_id: User performing the action
        comment: Optional comment, stored in history and audit metadata
        now: Reference instant (defaults to the current UTC time)
        require_comment_on_reject: Refuse "reject" without a non-blank comment

    Returns:
        UpdatedDocumentSummary: New status and version

    Raises:
        InvalidTransitionError: Unknown action or wrong stored status
        NotFoundError: Document absent or owned by another tenant
        DomainViolationError: Expired document, or reject without comment
        StateMismatchError: A concurrent writer changed the document first
        InfrastructureError: Persistence or audit failure
    """
    now = now or datetime.now(timezone.utc)
    try:
        action_label = WorkflowAction(action).value
    except ValueError:
        action_label = "unknown"

    try:
        transition = get_transition(action)

        def work() -> UpdatedDocumentSummary:
            document = gateway.find_document(document_id, tenant_id)
            if document is None:
                raise NotFoundError("document", document_id)

            if document.status != transition.from_status:
                raise InvalidTransitionError(
                    transition.action.value,
                    actual_status=document.status.value,
                    expected_status=transition.from_status.value,
                )

            if (
                transition.from_status is DocumentStatus.APPROVED
                and get_effective_document_status(document, now=now) is EffectiveStatus.EXPIRED
            ):
                raise DomainViolationError(
                    f"Cannot {transition.action.value}: the document has expired"
                )

            if (
                transition.action is WorkflowAction.REJECT
                and require_comment_on_reject
                and not (comment and comment.strip())
            ):
                raise DomainViolationError("A comment is required to reject a document")

            updated = gateway.conditional_update_status(
                document_id,
                tenant_id,
                expected_version=document.version,
                new_status=transition.to_status,
                actor_id=actor_id,
                now=now,
            )
            if not updated:
                raise StateMismatchError(document_id, expected_version=document.version)

            gateway.add_workflow_history(
                tenant_id=tenant_id,
                document_id=document_id,
                action=transition.action.value,
                from_status=transition.from_status,
                to_status=transition.to_status,
                actor_id=actor_id,
                now=now,
                comment=comment,
            )
            audit.record(
                tenant_id=tenant_id,
                actor_id=actor_id,
                action=transition.audit_action,
                entity_type=AuditEntityType.DOCUMENT,
                entity_id=document_id,
                metadata=AuditMetadata(
                    workflow_action=transition.action.value,
                    from_status=transition.from_status.value,
                    to_status=transition.to_status.value,
                    comment=comment,
                    document_number=document.document_number,
                ),
                now=now,
            )

            return UpdatedDocumentSummary(
                id=document_id,
                tenant_id=tenant_id,
                status=transition.to_status,
                version=document.version + 1,
                from_status=transition.from_status,
                updated_at=now,
            )

        summary = gateway.run_transaction(work)
    except DocflowError as exc:
        record_workflow_transition(action_label, _outcome_label(exc))
        logger.info(
            f"Workflow action {action_label} refused: {exc.code}",
            extra={"tenant_id": tenant_id, "user_id": actor_id, "document_id": document_id},
        )
        raise

    record_workflow_transition(action_label, "success")
    logger.info(
        f"Document moved {summary.from_status.value} -> {summary.status.value}",
        extra={
            "tenant_id": tenant_id,
            "user_id": actor_id,
            "document_id": document_id,
            "action": action_label,
        },
    )
    return summary
