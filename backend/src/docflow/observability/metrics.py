"""Prometheus metrics for DocFlow.

Counters for authorization decisions and workflow transition outcomes.
Labels are kept low-cardinality: no tenant, user or document ids.
"""

from prometheus_client import Counter

# Permission resolver outcomes
authorization_decisions_total = Counter(
    "docflow_authorization_decisions_total",
    "Total permission checks evaluated",
    ["permission", "decision"]  # decision: ALLOW|DENY
)

# Workflow engine outcomes
workflow_transitions_total = Counter(
    "docflow_workflow_transitions_total",
    "Total workflow transition attempts",
    ["action", "outcome"]  # outcome: success|invalid_transition|state_mismatch|domain_violation|not_found|error
)


def record_authorization_decision(permission: str, decision: str) -> None:
    authorization_decisions_total.labels(permission=permission, decision=decision).inc()


def record_workflow_transition(action: str, outcome: str) -> None:
    workflow_transitions_total.labels(action=action, outcome=outcome).inc()
