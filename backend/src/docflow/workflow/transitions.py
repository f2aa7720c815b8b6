"""Transition table - the single source of truth for document workflows.

Each action names the status a document must be in, the status it ends up in,
and the permission code a caller needs to request it.

┌──────────┬───────────┬───────────┬───────────────────────┐
│ Action   │ From      │ To        │ Permission            │
├──────────┼───────────┼───────────┼───────────────────────┤
│ submit   │ DRAFT     │ SUBMITTED │ DMS_DOCUMENT_SUBMIT   │
│ approve  │ SUBMITTED │ APPROVED  │ DMS_DOCUMENT_APPROVE  │
│ reject   │ SUBMITTED │ REJECTED  │ DMS_DOCUMENT_REJECT   │
│ withdraw │ SUBMITTED │ DRAFT     │ DMS_DOCUMENT_WITHDRAW │
│ obsolete │ APPROVED  │ OBSOLETE  │ DMS_DOCUMENT_OBSOLETE │
└──────────┴───────────┴───────────┴───────────────────────┘
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Union

from ..access.permissions import PermissionCode
from ..errors import InvalidTransitionError
from .status import DocumentStatus


class WorkflowAction(str, Enum):
    """Workflow actions a caller may request."""
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    WITHDRAW = "withdraw"
    OBSOLETE = "obsolete"


@dataclass(frozen=True)
class Transition:
    """A single row of the transition table."""
    action: WorkflowAction
    from_status: DocumentStatus
    to_status: DocumentStatus
    permission: PermissionCode

    @property
    def audit_action(self) -> str:
        return f"DMS.{self.action.value.upper()}"


TRANSITION_TABLE: Mapping[WorkflowAction, Transition] = MappingProxyType({
    WorkflowAction.SUBMIT: Transition(
        WorkflowAction.SUBMIT,
        DocumentStatus.DRAFT,
        DocumentStatus.SUBMITTED,
        PermissionCode.DMS_DOCUMENT_SUBMIT,
    ),
    WorkflowAction.APPROVE: Transition(
        WorkflowAction.APPROVE,
        DocumentStatus.SUBMITTED,
        DocumentStatus.APPROVED,
        PermissionCode.DMS_DOCUMENT_APPROVE,
    ),
    WorkflowAction.REJECT: Transition(
        WorkflowAction.REJECT,
        DocumentStatus.SUBMITTED,
        DocumentStatus.REJECTED,
        PermissionCode.DMS_DOCUMENT_REJECT,
    ),
    WorkflowAction.WITHDRAW: Transition(
        WorkflowAction.WITHDRAW,
        DocumentStatus.SUBMITTED,
        DocumentStatus.DRAFT,
        PermissionCode.DMS_DOCUMENT_WITHDRAW,
    ),
    WorkflowAction.OBSOLETE: Transition(
        WorkflowAction.OBSOLETE,
        DocumentStatus.APPROVED,
        DocumentStatus.OBSOLETE,
        PermissionCode.DMS_DOCUMENT_OBSOLETE,
    ),
})


def get_transition(action: Union[WorkflowAction, str]) -> Transition:
    """Look up the transition for an action.

    Raises:
        InvalidTransitionError: If the action is not part of the table
    """
    try:
        return TRANSITION_TABLE[WorkflowAction(action)]
    except ValueError:
        raise InvalidTransitionError(str(action))


def get_allowed_actions(status: DocumentStatus) -> List[WorkflowAction]:
    """Actions that are legal from a stored status.

    Example:
        >>> get_allowed_actions(DocumentStatus.SUBMITTED)
        [<WorkflowAction.APPROVE: 'approve'>, <WorkflowAction.REJECT: 'reject'>, <WorkflowAction.WITHDRAW: 'withdraw'>]
    """
    return [t.action for t in TRANSITION_TABLE.values() if t.from_status == status]


def can_transition(status: DocumentStatus, action: Union[WorkflowAction, str]) -> bool:
    """Check if an action is legal from a stored status without raising."""
    try:
        transition = get_transition(action)
    except InvalidTransitionError:
        return False
    return transition.from_status == DocumentStatus(status)


ALLOWED_ACTIONS: Dict[DocumentStatus, List[WorkflowAction]] = {
    status: get_allowed_actions(status) for status in DocumentStatus
}
