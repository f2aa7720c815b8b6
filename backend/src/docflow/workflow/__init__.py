"""Document workflow - status enums, transition table and effective status.

The engine itself lives in workflow.engine and is imported from there.
"""

from .status import (
    DocumentStatus,
    EffectiveStatus,
    get_effective_document_status,
    require_effective_status,
)
from .transitions import (
    ALLOWED_ACTIONS,
    TRANSITION_TABLE,
    Transition,
    WorkflowAction,
    can_transition,
    get_allowed_actions,
    get_transition,
)

__all__ = [
    "DocumentStatus",
    "EffectiveStatus",
    "get_effective_document_status",
    "require_effective_status",
    "ALLOWED_ACTIONS",
    "TRANSITION_TABLE",
    "Transition",
    "WorkflowAction",
    "can_transition",
    "get_allowed_actions",
    "get_transition",
]
