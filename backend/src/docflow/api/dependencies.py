"""FastAPI dependencies for the document API.

Authentication is performed upstream: an authentication collaborator (for
example a gateway middleware) attaches the caller's IdentityContext to
``request.state.identity``. Requests without one are rejected with 401.

Usage:
    @router.post("/{document_id}/transitions")
    def transition(
        identity: IdentityContext = Depends(get_identity),
        service: DocumentWorkflowService = Depends(get_workflow_service),
    ):
        ...
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..access.identity import IdentityContext
from ..config import get_settings
from ..database import get_db
from ..documents.service import DocumentWorkflowService
from ..errors import InvalidIdentityError


def get_identity(request: Request) -> IdentityContext:
    """Return the authenticated caller snapshot attached to the request.

    Raises:
        InvalidIdentityError: If no valid identity was attached (mapped to 401)
    """
    identity = getattr(request.state, "identity", None)
    if not isinstance(identity, IdentityContext):
        raise InvalidIdentityError()
    return identity


def get_workflow_service(db: Session = Depends(get_db)) -> DocumentWorkflowService:
    """Request-scoped document service sharing one session."""
    return DocumentWorkflowService(db, get_settings())
