"""Typed errors raised by the access control and workflow core.

Every error carries a stable ``code`` for the API layer, a ``public_message``
that is safe to show to the caller (no internal identifiers), and a
``retryable`` flag. Only InfrastructureError is treated as a system anomaly;
the other kinds are expected business outcomes.
"""

from typing import Optional


class DocflowError(Exception):
    """Base class of all errors raised by the core."""
    code = "DOCFLOW_ERROR"
    public_message = "The request could not be completed"
    retryable = False

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)


class InvalidIdentityError(DocflowError):
    """Identity context is missing, unauthenticated or malformed.

    This is a contract violation by the caller, never a permission denial.
    """
    code = "INVALID_IDENTITY"
    public_message = "Authentication is required"


class AuthorizationDenied(DocflowError):
    """The permission resolver denied the requested capability."""
    code = "FORBIDDEN"
    public_message = "You do not have permission to perform this action"

    def __init__(self, permission_code: str, reason: Optional[str] = None):
        self.permission_code = permission_code
        self.reason = reason
        detail = f"Permission {permission_code} denied"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class InvalidTransitionError(DocflowError):
    """Requested workflow action is illegal from the document's stored status."""
    code = "INVALID_TRANSITION"

    def __init__(
        self,
        action: str,
        actual_status: Optional[str] = None,
        expected_status: Optional[str] = None,
    ):
        self.action = action
        self.actual_status = actual_status
        self.expected_status = expected_status
        if actual_status is None:
            message = f"Unknown workflow action '{action}'"
        else:
            message = (
                f"Cannot {action} a document in status {actual_status} "
                f"(expected {expected_status})"
            )
        self.public_message = message
        super().__init__(message)


class StateMismatchError(DocflowError):
    """A concurrent writer changed the document between read and write.

    Safe to retry after re-reading the current state.
    """
    code = "STATE_MISMATCH"
    public_message = "The document was changed by another request, please retry"
    retryable = True

    def __init__(self, document_id, expected_version: Optional[int] = None):
        self.document_id = document_id
        self.expected_version = expected_version
        super().__init__(
            f"Document {document_id} no longer at version {expected_version}"
        )


class DomainViolationError(DocflowError):
    """A business precondition outside the raw state machine failed."""
    code = "DOMAIN_VIOLATION"

    def __init__(self, message: str):
        self.public_message = message
        super().__init__(message)


class DocumentAlreadySupersededError(DomainViolationError):
    """An approved document already has a successor revision."""
    code = "DOCUMENT_ALREADY_SUPERSEDED"

    def __init__(self, document_number: Optional[str] = None):
        self.document_number = document_number
        label = f"Document {document_number}" if document_number else "The document"
        super().__init__(f"{label} has already been superseded by a newer revision")


class NotFoundError(DocflowError):
    """Entity is absent or belongs to another tenant.

    Both cases are reported identically so callers cannot probe for the
    existence of other tenants' resources.
    """
    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id=None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.public_message = f"{entity_type.capitalize()} not found"
        super().__init__(f"{entity_type} {entity_id} not found")


class InfrastructureError(DocflowError):
    """Persistence gateway or audit emitter failure."""
    code = "INFRASTRUCTURE_ERROR"
    public_message = "A temporary system error occurred, please try again later"
